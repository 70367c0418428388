from typing import Optional, cast

import boto3


boto3_session: Optional[boto3.session.Session] = None


class AWSSessionBuilder:

    class NoSuchAWSProfile(Exception):
        """
        We raise this if the AWS profile requested on the command line
        does not exist in the user's ``~/.aws/config`` file.
        """
        pass

    def new(self, profile: Optional[str] = None, region: Optional[str] = None) -> boto3.session.Session:
        """
        Build and return a properly configured boto3 ``Session`` object.

        Keyword Args:
            profile: use this profile from ``~/.aws/config``
            region: use this AWS region instead of the profile's default

        Raises:
            AWSSessionBuilder.NoSuchAWSProfile: the requested profile is not in
                ``~/.aws/config``

        Returns:
            A configured boto3 ``Session`` object.
        """
        if profile:
            if profile not in boto3.session.Session().available_profiles:
                raise self.NoSuchAWSProfile("AWS profile '{}' does not exist in your ~/.aws/config".format(profile))
            return boto3.session.Session(profile_name=profile, region_name=region)
        # No profile, so leave it up to the normal AWS credentials resolution
        return boto3.session.Session(region_name=region)


def build_boto3_session(
    profile: Optional[str] = None,
    region: Optional[str] = None,
    boto3_session_override: boto3.session.Session = None
) -> None:
    """
    Build a boto3 session object from commandline flags and our environment.
    Save it in the global variable :py:data:`boto3_session` so we don't have
    to keep constructing it.

    Keyword Args:
        profile: the AWS profile to use
        region: the AWS region to use
        boto3_session_override: if not None, use this boto3 session object instead of
            building a new one
    """
    global boto3_session  # pylint: disable=global-statement
    if boto3_session_override:
        boto3_session = boto3_session_override
    else:
        boto3_session = AWSSessionBuilder().new(profile=profile, region=region)


def get_boto3_session(
    boto3_session_override: boto3.session.Session = None
) -> boto3.session.Session:
    """
    Get the boto3 session object that we've built, or the one that was passed in
    by ``boto3_session_override``.

    Args:
        boto3_session_override: if not None, use this boto3 session object instead of
            the one we built.

    Returns:
        The boto3 session object.
    """
    if boto3_session_override:
        return boto3_session_override
    if boto3_session:
        return boto3_session
    return cast(boto3.session.Session, boto3)
