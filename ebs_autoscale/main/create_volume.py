"""
Create, attach and account for one EBS volume on this instance.

Prints the device path on success (exit 0); prints a diagnostic on any failure (exit 1).
"""
import sys
import argparse
import boto3
from botocore.exceptions import BotoCoreError
from typing import List, Optional

from ebs_autoscale.utils.logger import logger, set_verbosity
from ebs_autoscale.utils.config import AutoscaleConfig, COUNTER_STORES
from ebs_autoscale.utils.errors import EBSAutoscaleError, ConfigError
from ebs_autoscale.models.host_state import HostState, InstanceIdentity
from ebs_autoscale.models.volume_request import VolumeRequest, VOLUME_TYPES, DEFAULT_VOLUME_TYPE
from ebs_autoscale.managers.metadata_manager import InstanceMetadataManager
from ebs_autoscale.managers.ebs_manager import EBSVolumeManager
from ebs_autoscale.managers.ec2_manager import EC2VolumeManager, EC2TagsManager
from ebs_autoscale.managers.counter_manager import LocalCounterManager, RemoteCounterManager
from ebs_autoscale.managers.device_manager import DeviceAllocator
from ebs_autoscale.managers.limit_manager import LimitEnforcer
from ebs_autoscale.managers.lock_manager import HostLock
from ebs_autoscale.managers.provision_manager import (VolumeProvisioner, Attacher, VisibilityWaiter,
                                                      TerminationPolicySetter)
from ebs_autoscale.managers.autoscale_manager import VolumeAutoscaler

class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit 1 like every other failure"""
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f'{self.prog}: error: {message}\n')

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = _ArgumentParser(
        prog='ebs-autoscale-create-volume',
        description='Create an EBS volume, attach it to this instance and print its device path'
    )
    parser.add_argument('-s', '--size', type=int, required=True, help='volume size in GiB')
    parser.add_argument('-t', '--type', dest='volume_type', choices=VOLUME_TYPES, default=DEFAULT_VOLUME_TYPE,
                        help=f'volume type (default: {DEFAULT_VOLUME_TYPE})')
    parser.add_argument('-i', '--iops', type=int, help='provisioned IOPS (gp3, io1, io2)')
    parser.add_argument('--throughput', type=int, help='provisioned throughput in MiB/s (gp3)')
    parser.add_argument('--not-encrypted', action='store_true', help='do not encrypt the volume')
    parser.add_argument('--max-total-created-size', type=int, help='maximum cumulative GiB created for this instance')
    parser.add_argument('--max-attached-volumes', type=int, help='maximum volumes attached to this instance')
    parser.add_argument('--max-created-volumes', type=int, help='maximum volumes created for this instance')
    parser.add_argument('--counter-store', choices=COUNTER_STORES, help='where counters are kept')
    parser.add_argument('--state-dir', help='directory for the lock and local counter state')
    parser.add_argument('--region', help='AWS region (default: derived from the availability zone)')
    parser.add_argument('--config', help='JSON config file')
    parser.add_argument('-v', '--verbose', action='store_true', help='verbose logging')
    return parser.parse_args(argv)

def load_config(args: argparse.Namespace) -> AutoscaleConfig:
    config = AutoscaleConfig(config_file=args.config)
    config.update({
        'max_total_created_size': args.max_total_created_size,
        'max_attached_volumes': args.max_attached_volumes,
        'max_created_volumes': args.max_created_volumes,
        'counter_store': args.counter_store,
        'state_dir': args.state_dir,
        'region': args.region,
    })
    return config

def build_autoscaler(config: AutoscaleConfig, identity: InstanceIdentity, ec2_client) -> VolumeAutoscaler:
    """Wire the managers for this host
    Args:
        config: resolved configuration
        identity: this instance
        ec2_client: boto3 EC2 client for the instance's region
    Return:
        A ready VolumeAutoscaler
    """
    ebs_manager = EBSVolumeManager(ec2_client,
                                   waiter_delay=config.availability_delay,
                                   waiter_max_attempts=config.availability_attempts)
    ec2_manager = EC2VolumeManager(ec2_client)

    if config.counter_store == 'remote':
        counter_store = RemoteCounterManager(ebs_manager, identity.instance_id)
    else:
        counter_store = LocalCounterManager(config.state_path)
    host_state = HostState(identity=identity, counter_store=counter_store)

    return VolumeAutoscaler(
        host_state=host_state,
        limits=LimitEnforcer(max_attached=config.max_attached_volumes,
                             max_created=config.max_created_volumes,
                             max_total_size=config.max_total_created_size),
        allocator=DeviceAllocator(host_state, ec2_manager),
        provisioner=VolumeProvisioner(ebs_manager, EC2TagsManager(ec2_client)),
        attacher=Attacher(ec2_manager, ebs_manager, settle_delay=config.settle_delay),
        visibility_waiter=VisibilityWaiter(host_state.device_exists,
                                           attempts=config.visibility_attempts,
                                           interval=config.visibility_interval),
        policy_setter=TerminationPolicySetter(ec2_manager),
        lock=HostLock(config.lock_path, timeout=config.lock_timeout),
    )

def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    args = parse_args(argv)
    set_verbosity(args.verbose)

    try:
        request = VolumeRequest.build(size=args.size,
                                      volume_type=args.volume_type,
                                      iops=args.iops,
                                      throughput=args.throughput,
                                      encrypted=not args.not_encrypted)
        config = load_config(args)

        metadata = InstanceMetadataManager(timeout=config.imds_timeout)
        identity = metadata.get_identity()
        region = config.region or identity.region
        try:
            ec2_client = boto3.client('ec2', region_name=region)
        except BotoCoreError as e:
            raise ConfigError(f'cannot create EC2 client for region "{region}"', str(e))

        autoscaler = build_autoscaler(config, identity, ec2_client)
        result = autoscaler.provision(request)
    except ConfigError as e:
        print(f'configuration error: {e}', file=sys.stderr)
        return 1
    except EBSAutoscaleError as e:
        print(f'{type(e).__name__}: {e}', file=sys.stderr)
        return 1

    logger.info(f'[SUCCESS] volume "{result.volume_id}" attached at {result.device_name}')
    print(result.device_name)
    return 0

if __name__ == '__main__':
    sys.exit(main())
