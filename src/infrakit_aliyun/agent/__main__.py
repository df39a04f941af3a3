"""Run the instance plugin without the CLI.

The configuration file may be given through ``INFRAKIT_ALIYUN_CONFIG``;
otherwise ``./config.yaml`` is used when present.
"""

import asyncio
import os
import sys
from pathlib import Path

from infrakit_aliyun.agent.main import run_agent


def main():
    """Run the plugin until interrupted."""
    config_file = os.environ.get("INFRAKIT_ALIYUN_CONFIG")

    try:
        asyncio.run(run_agent(config_file=Path(config_file) if config_file else None))
    except KeyboardInterrupt:
        sys.exit(0)
    except Exception as e:
        print(f"infrakit-aliyun-plugin: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
