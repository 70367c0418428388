from copy import deepcopy
import unittest

from testfixtures import LogCapture, compare

from ecsroll.core.models import Deployment, DeploymentStatusSnapshot, TaskDefinition
from ecsroll.exceptions import ConfigProcessingFailed, RegistrationConfirmationError

from .fakes import APP_TASK_DEFINITION, PRIMARY_DEPLOYMENT


class TestTaskDefinition_new(unittest.TestCase):

    def setUp(self):
        self.td = TaskDefinition.new(APP_TASK_DEFINITION)

    def test_family(self):
        self.assertEqual(self.td.family, 'app')

    def test_taskRoleArn(self):
        self.assertEqual(self.td.taskRoleArn, 'arn:aws:iam::123456789012:role/app-task')

    def test_networkMode(self):
        self.assertEqual(self.td.networkMode, 'bridge')

    def test_unregistered_has_no_name(self):
        self.assertIsNone(self.td.name)
        self.assertEqual(self.td.revision, 0)
        self.assertFalse(self.td.is_registered)

    def test_pk_is_family_before_registration(self):
        self.assertEqual(self.td.pk, 'app')

    def test_does_not_share_data_with_document(self):
        document = deepcopy(APP_TASK_DEFINITION)
        td = TaskDefinition.new(document)
        document['containerDefinitions'].append({'name': 'extra'})
        self.assertEqual(len(td.containerDefinitions), 2)

    def test_aws_assigned_fields_are_dropped(self):
        document = deepcopy(APP_TASK_DEFINITION)
        document.update({
            'taskDefinitionArn': 'arn:aws:ecs:us-west-2:123456789012:task-definition/app:6',
            'revision': 6,
            'status': 'ACTIVE',
            'requiresAttributes': [{'name': 'com.amazonaws.ecs.capability.task-iam-role'}],
            'compatibilities': ['EC2'],
        })
        td = TaskDefinition.new(document)
        self.assertFalse(td.is_registered)
        self.assertIsNone(td.name)
        self.assertIsNone(td.status)
        self.assertNotIn('requiresAttributes', td.data)

    def test_missing_family_raises(self):
        document = deepcopy(APP_TASK_DEFINITION)
        del document['family']
        with self.assertRaises(TaskDefinition.ImproperlyConfigured):
            TaskDefinition.new(document)

    def test_empty_family_raises(self):
        document = deepcopy(APP_TASK_DEFINITION)
        document['family'] = ''
        with self.assertRaises(ConfigProcessingFailed):
            TaskDefinition.new(document)


class TestTaskDefinition_render(unittest.TestCase):

    def setUp(self):
        self.td = TaskDefinition.new(APP_TASK_DEFINITION)

    def test_round_trip_preserves_fields(self):
        compare(self.td.render(), APP_TASK_DEFINITION)

    def test_round_trip_preserves_container_order(self):
        names = [c['name'] for c in self.td.render()['containerDefinitions']]
        self.assertEqual(names, ['web', 'worker'])

    def test_render_is_a_copy(self):
        data = self.td.render()
        data['containerDefinitions'][0]['image'] = 'changed'
        self.assertEqual(self.td.containerDefinitions[0]['image'], 'nginx:1.25')

    def test_missing_sequences_render_as_empty_lists(self):
        td = TaskDefinition.new({'family': 'app', 'containerDefinitions': [{'name': 'web'}]})
        data = td.render()
        self.assertEqual(data['volumes'], [])
        self.assertEqual(data['placementConstraints'], [])
        self.assertIsNone(data['taskRoleArn'])


class TestTaskDefinition_render_for_register(unittest.TestCase):

    def test_full_document(self):
        td = TaskDefinition.new(APP_TASK_DEFINITION)
        compare(td.render_for_register(), APP_TASK_DEFINITION)

    def test_empty_optional_strings_are_dropped(self):
        td = TaskDefinition.new({
            'family': 'app',
            'taskRoleArn': '',
            'networkMode': '',
            'containerDefinitions': [{'name': 'web'}]
        })
        data = td.render_for_register()
        self.assertNotIn('taskRoleArn', data)
        self.assertNotIn('networkMode', data)
        self.assertEqual(data['family'], 'app')

    def test_optional_register_fields_are_passed_through(self):
        document = deepcopy(APP_TASK_DEFINITION)
        document['executionRoleArn'] = 'arn:aws:iam::123456789012:role/app-exec'
        document['cpu'] = '256'
        document['requiresCompatibilities'] = ['FARGATE']
        document['notARegisterParameter'] = 'ignored'
        data = TaskDefinition.new(document).render_for_register()
        self.assertEqual(data['executionRoleArn'], 'arn:aws:iam::123456789012:role/app-exec')
        self.assertEqual(data['cpu'], '256')
        self.assertEqual(data['requiresCompatibilities'], ['FARGATE'])
        self.assertNotIn('notARegisterParameter', data)

    def test_fault_injection_is_passed_through(self):
        document = deepcopy(APP_TASK_DEFINITION)
        document['enableFaultInjection'] = True
        data = TaskDefinition.new(document).render_for_register()
        self.assertIs(data['enableFaultInjection'], True)

    def test_unsupported_keys_are_logged(self):
        document = deepcopy(APP_TASK_DEFINITION)
        document['notARegisterParameter'] = 'ignored'
        document['anotherOne'] = 1
        with LogCapture('ecsroll.core.models.ecs') as capture:
            TaskDefinition.new(document).render_for_register()
        capture.check(
            (
                'ecsroll.core.models.ecs',
                'DEBUG',
                'task definition app: not sending unsupported keys to register_task_definition: '
                'anotherOne, notARegisterParameter'
            ),
        )

    def test_nothing_logged_for_supported_keys(self):
        with LogCapture('ecsroll.core.models.ecs') as capture:
            TaskDefinition.new(APP_TASK_DEFINITION).render_for_register()
        capture.check()

    def test_no_family_raises(self):
        td = TaskDefinition({'containerDefinitions': []})
        with self.assertRaises(TaskDefinition.ImproperlyConfigured):
            td.render_for_register()


class TestTaskDefinition_from_registration(unittest.TestCase):

    def response(self, **kwargs):
        data = deepcopy(APP_TASK_DEFINITION)
        data.update({
            'revision': 12,
            'status': 'ACTIVE',
            'taskDefinitionArn': 'arn:aws:ecs:us-west-2:123456789012:task-definition/app:12',
        })
        data.update(kwargs)
        return {'taskDefinition': data}

    def test_name(self):
        td = TaskDefinition.from_registration(self.response())
        self.assertEqual(td.name, 'app:12')
        self.assertEqual(td.name, f'{td.family}:{td.revision}')

    def test_status_and_arn(self):
        td = TaskDefinition.from_registration(self.response())
        self.assertEqual(td.status, 'ACTIVE')
        self.assertEqual(td.arn, 'arn:aws:ecs:us-west-2:123456789012:task-definition/app:12')
        self.assertTrue(td.is_registered)

    def test_is_a_new_object(self):
        response = self.response()
        td = TaskDefinition.from_registration(response)
        response['taskDefinition']['revision'] = 99
        self.assertEqual(td.revision, 12)

    def test_no_task_definition_key(self):
        with self.assertRaises(RegistrationConfirmationError):
            TaskDefinition.from_registration({'ResponseMetadata': {}})

    def test_not_a_dict(self):
        with self.assertRaises(RegistrationConfirmationError):
            TaskDefinition.from_registration('{"taskDefinition": {}}')

    def test_no_family(self):
        with self.assertRaises(RegistrationConfirmationError):
            TaskDefinition.from_registration(self.response(family=''))

    def test_zero_revision(self):
        with self.assertRaises(RegistrationConfirmationError):
            TaskDefinition.from_registration(self.response(revision=0))

    def test_string_revision(self):
        with self.assertRaises(RegistrationConfirmationError):
            TaskDefinition.from_registration(self.response(revision='12'))

    def test_missing_revision(self):
        response = self.response()
        del response['taskDefinition']['revision']
        with self.assertRaises(RegistrationConfirmationError):
            TaskDefinition.from_registration(response)


class TestDeployment(unittest.TestCase):

    def test_task_definition_is_family_revision(self):
        self.assertEqual(Deployment(PRIMARY_DEPLOYMENT).task_definition, 'app:6')

    def test_str(self):
        self.assertEqual(
            str(Deployment(PRIMARY_DEPLOYMENT)),
            ' PRIMARY app:6 desired:2 pending:0 running:2'
        )

    def test_str_with_rollout_state(self):
        data = deepcopy(PRIMARY_DEPLOYMENT)
        data['rolloutState'] = 'IN_PROGRESS'
        self.assertTrue(str(Deployment(data)).endswith(' rollout:IN_PROGRESS'))

    def test_snapshot_lines(self):
        active = deepcopy(PRIMARY_DEPLOYMENT)
        active['status'] = 'ACTIVE'
        snapshot = DeploymentStatusSnapshot('myService', [Deployment(PRIMARY_DEPLOYMENT), Deployment(active)])
        self.assertEqual(len(snapshot), 2)
        self.assertEqual(
            list(snapshot.lines()),
            [' PRIMARY app:6 desired:2 pending:0 running:2', '  ACTIVE app:6 desired:2 pending:0 running:2']
        )
