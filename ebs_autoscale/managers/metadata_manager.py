"""
Implements the Instance Metadata Service (IMDSv2) lookups.
"""
import requests
from ebs_autoscale.utils.logger import logger
from ebs_autoscale.utils.errors import MetadataError
from ebs_autoscale.interfaces.metadata_interface import InstanceMetadataInterface
from ebs_autoscale.models.host_state import InstanceIdentity
from typing import Optional

IMDS_ENDPOINT = 'http://169.254.169.254'
TOKEN_TTL_SECONDS = 21600

class InstanceMetadataManager(InstanceMetadataInterface):
    def __init__(self,
                 endpoint: str = IMDS_ENDPOINT,
                 timeout: float = 2.0,
                 session: Optional[requests.Session] = None):
        """Initialize IMDS resources
        Docs:
            https://docs.aws.amazon.com/AWSEC2/latest/UserGuide/instancedata-data-retrieval.html
        Args:
            endpoint: the metadata service base URL
            timeout: per-request timeout in seconds
            session: optional requests session (injected for testing)
        """
        self.endpoint = endpoint.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self._token = None

    def _get_token(self) -> str:
        """Fetch (once) an IMDSv2 session token
        """
        if self._token is None:
            try:
                response = self.session.put(f'{self.endpoint}/latest/api/token',
                                            headers={'X-aws-ec2-metadata-token-ttl-seconds': str(TOKEN_TTL_SECONDS)},
                                            timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                logger.error(f'[FAIL] cannot get IMDS token ({e})')
                raise MetadataError('cannot get instance metadata token', str(e))
            self._token = response.text
        return self._token

    def _get(self, path: str) -> str:
        token = self._get_token()
        try:
            response = self.session.get(f'{self.endpoint}/latest/meta-data/{path}',
                                        headers={'X-aws-ec2-metadata-token': token},
                                        timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f'[FAIL] cannot read instance metadata "{path}" ({e})')
            raise MetadataError(f'cannot read instance metadata "{path}"', str(e))
        value = response.text.strip()
        if not value:
            raise MetadataError(f'instance metadata "{path}" is empty')
        return value

    def get_instance_id(self) -> str:
        return self._get('instance-id')

    def get_availability_zone(self) -> str:
        return self._get('placement/availability-zone')

    def get_region(self) -> str:
        """Region derived from the availability zone (us-east-1a -> us-east-1)
        """
        return self.get_availability_zone()[:-1]

    def get_identity(self) -> InstanceIdentity:
        identity = InstanceIdentity(instance_id=self.get_instance_id(),
                                    availability_zone=self.get_availability_zone())
        logger.debug(f'[INFO] running on "{identity.instance_id}" in {identity.availability_zone}')
        return identity
