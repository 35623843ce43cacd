"""Run one catalog sync pass from the command line and print the result."""

import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ymmybttn.app import build_app_state, configure_logging
from ymmybttn.errors import AppError
from ymmybttn.sync.service import SyncService


def sync_once(verify: bool = True) -> int:
    """Verify credentials (optionally) and run a single pass."""
    configure_logging()
    service = SyncService(build_app_state())
    try:
        if verify:
            result = service.start_product_sync()
        else:
            result = service.force_sync()
    except AppError as e:
        print(json.dumps(e.to_frontend_error(), indent=2))
        return 1
    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(sync_once(verify="--no-verify" not in sys.argv))
