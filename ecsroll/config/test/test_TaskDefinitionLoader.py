import os
import unittest

from ecsroll.config import DeployConfig, load_document, load_task_definition
from ecsroll.exceptions import ConfigProcessingFailed, ParseError


HERE = os.path.dirname(os.path.abspath(__file__))


def fixture(name):
    return os.path.join(HERE, name)


class TestLoadDocument(unittest.TestCase):

    def test_json(self):
        document = load_document(fixture('app.json'))
        self.assertEqual(document['family'], 'app')
        # no substitutions yet
        self.assertEqual(document['containerDefinitions'][0]['image'], 'example/web:{{ env `IMAGE_TAG` `latest` }}')

    def test_yaml(self):
        document = load_document(fixture('app.yml'))
        self.assertEqual(document['family'], 'app')
        self.assertEqual(len(document['containerDefinitions']), 2)

    def test_described_task_definition_is_unwrapped(self):
        document = load_document(fixture('described.json'))
        self.assertEqual(document['family'], 'app')
        self.assertEqual(document['revision'], 6)

    def test_missing_file(self):
        with self.assertRaises(ConfigProcessingFailed) as cm:
            load_document(fixture('nope.json'))
        self.assertIn("Couldn't find task definition file", str(cm.exception))

    def test_bad_json(self):
        with self.assertRaises(ParseError) as cm:
            load_document(fixture('bad.json'))
        self.assertIn('bad.json', str(cm.exception))

    def test_not_an_object(self):
        with self.assertRaises(ParseError):
            load_document(fixture('list.json'))


class TestLoadTaskDefinition(unittest.TestCase):

    def test_env_file_substitution(self):
        td = load_task_definition(fixture('app.json'), env_file=fixture('env_file.env'), environ={})
        web, worker = td.containerDefinitions
        self.assertEqual(web['image'], 'example/web:1.2.3')
        self.assertEqual(worker['image'], 'example/worker:1.2.3')
        self.assertEqual(web['environment'][0], {'name': 'DB_HOST', 'value': 'db.example.com'})

    def test_defaults(self):
        td = load_task_definition(fixture('app.json'), environ={})
        web = td.containerDefinitions[0]
        self.assertEqual(web['image'], 'example/web:latest')
        self.assertEqual(web['environment'][0]['value'], '')
        self.assertEqual(web['environment'][1]['value'], 'info')

    def test_environment_wins_over_env_file(self):
        td = load_task_definition(
            fixture('app.json'),
            env_file=fixture('env_file.env'),
            environ={'IMAGE_TAG': '2.0.0', 'LOG_LEVEL': 'debug'}
        )
        web = td.containerDefinitions[0]
        self.assertEqual(web['image'], 'example/web:2.0.0')
        self.assertEqual(web['environment'][0]['value'], 'db.example.com')
        self.assertEqual(web['environment'][1]['value'], 'debug')

    def test_yaml_and_json_load_the_same(self):
        from_json = load_task_definition(fixture('app.json'), env_file=fixture('env_file.env'), environ={})
        from_yaml = load_task_definition(fixture('app.yml'), env_file=fixture('env_file.env'), environ={})
        self.assertEqual(from_json.containerDefinitions, from_yaml.containerDefinitions)

    def test_non_string_values_are_untouched(self):
        td = load_task_definition(fixture('app.json'), environ={})
        self.assertEqual(td.containerDefinitions[0]['memory'], 256)
        self.assertIs(td.containerDefinitions[0]['essential'], True)

    def test_unquoted_reference_loads_as_number(self):
        td = load_task_definition(fixture('numeric.json'), environ={})
        web = td.containerDefinitions[0]
        self.assertEqual(web['memory'], 256)
        self.assertEqual(web['cpu'], 128)
        self.assertIs(web['essential'], True)

    def test_unquoted_reference_from_environment(self):
        td = load_task_definition(fixture('numeric.json'), environ={'MEMORY': '512', 'ESSENTIAL': 'false'})
        web = td.containerDefinitions[0]
        self.assertEqual(web['memory'], 512)
        self.assertIs(web['essential'], False)

    def test_quoted_reference_stays_a_string(self):
        td = load_task_definition(fixture('numeric.json'), environ={})
        self.assertEqual(td.containerDefinitions[0]['environment'][0]['value'], '4')

    def test_unquoted_reference_in_yaml(self):
        td = load_task_definition(fixture('numeric.yml'), environ={'MEMORY': '1024'})
        web = td.containerDefinitions[0]
        self.assertEqual(web['memory'], 1024)
        self.assertIs(web['essential'], True)

    def test_substitution_that_breaks_the_syntax(self):
        with self.assertRaises(ParseError):
            load_task_definition(fixture('numeric.json'), environ={'MEMORY': 'lots'})

    def test_must_env(self):
        td = load_task_definition(fixture('must_env.json'), environ={'IMAGE_TAG': '1.2.3'})
        self.assertEqual(td.containerDefinitions[0]['image'], 'example/web:1.2.3')

    def test_must_env_unset(self):
        with self.assertRaises(ConfigProcessingFailed) as cm:
            load_task_definition(fixture('must_env.json'), environ={})
        self.assertIn('IMAGE_TAG', str(cm.exception))

    def test_missing_env_file(self):
        with self.assertRaises(ConfigProcessingFailed) as cm:
            load_task_definition(fixture('app.json'), env_file=fixture('nope.env'), environ={})
        self.assertIn('does not exist', str(cm.exception))

    def test_env_file_is_a_directory(self):
        with self.assertRaises(ConfigProcessingFailed) as cm:
            load_task_definition(fixture('app.json'), env_file=HERE, environ={})
        self.assertIn('not a regular file', str(cm.exception))

    def test_described_task_definition_loads_unregistered(self):
        td = load_task_definition(fixture('described.json'), environ={})
        self.assertFalse(td.is_registered)
        self.assertIsNone(td.name)
        self.assertNotIn('requiresAttributes', td.data)

    def test_no_family(self):
        with self.assertRaises(ConfigProcessingFailed):
            load_task_definition(fixture('no_family.json'), environ={})


class TestDeployConfig(unittest.TestCase):

    def test_defaults(self):
        config = DeployConfig('default', 'myService', 'app.json')
        self.assertEqual(config.timeout, 300)
        self.assertIsNone(config.env_file)

    def test_zero_timeout_is_allowed(self):
        self.assertEqual(DeployConfig('default', 'myService', 'app.json', timeout=0).timeout, 0)

    def test_negative_timeout(self):
        with self.assertRaises(ConfigProcessingFailed):
            DeployConfig('default', 'myService', 'app.json', timeout=-1)

    def test_missing_cluster(self):
        with self.assertRaises(ConfigProcessingFailed) as cm:
            DeployConfig('', 'myService', 'app.json')
        self.assertIn('cluster', str(cm.exception))

    def test_missing_service(self):
        with self.assertRaises(ConfigProcessingFailed):
            DeployConfig('default', None, 'app.json')

    def test_missing_task_definition_path(self):
        with self.assertRaises(ConfigProcessingFailed):
            DeployConfig('default', 'myService', '')
