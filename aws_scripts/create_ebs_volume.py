"""
Create and attach one autoscaled EBS volume on this instance.

Designed to be run by the disk autoscaling agent, e.g. create_ebs_volume.py --size 100 --type gp3
"""
import sys
import os

# Looks at project root directory; used for finding ebs_autoscale
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from ebs_autoscale.main.create_volume import main

if __name__ == "__main__":
    sys.exit(main())
