import logging
import boto3
from botocore.exceptions import ClientError
from botocore.config import Config
from retry import retry

RETRIES_NUMBER = 3
REGION = 'us-east-1'
DEFAULT_TIMEOUT = 5


class AWSWrapper:
    """
    Wrapper class for creating AWS sessions and clients with retry capabilities.

    Only session and client construction is retried; calls made through the
    returned clients are not.
    """

    def __init__(self, aws_access_key_id: str = None, aws_secret_access_key: str = None,
                 aws_session_token: str = None, sso_profile_name: str = None,
                 region_name: str = REGION, timeout: float = DEFAULT_TIMEOUT):
        self._region_name = region_name
        self._timeout = timeout
        self._session = self._create_boto_session(aws_access_key_id, aws_secret_access_key,
                                                  aws_session_token, sso_profile_name)

    @retry(exceptions=ClientError, tries=RETRIES_NUMBER, delay=3)
    def _create_boto_session(self, aws_access_key_id: str = None, aws_secret_access_key: str = None,
                             aws_session_token: str = None, sso_profile_name: str = None):
        logging.debug("Creating boto3 session via " + ("SSO profile name" if sso_profile_name else "AWS access key"))
        return boto3.session.Session(profile_name=sso_profile_name, region_name=self._region_name) \
            if sso_profile_name else boto3.session.Session(aws_access_key_id, aws_secret_access_key,
                                                           aws_session_token, region_name=self._region_name)

    @retry(exceptions=ClientError, tries=RETRIES_NUMBER, delay=3)
    def create_aws_client(self, service_name: str, region_name: str = None, config=None):
        """
        Create a boto3 client with retry capability.

        The default client configuration bounds connect and read time to the
        wrapper's timeout and disables botocore's own request retries.

        Args:
            service_name: AWS service name ('sqs', etc.)
            region_name: Optional AWS region override
            config: Optional boto3 configuration

        Returns:
            Boto3 client for the requested service
        """
        logging.debug(f'creating aws client for: {service_name}')

        default_config = Config(
            connect_timeout=self._timeout,
            read_timeout=self._timeout,
            retries={'max_attempts': 1, 'mode': 'standard'}
        )
        return self._session.client(service_name=service_name, region_name=region_name,
                                    config=config or default_config)
