from __future__ import annotations

import logging
import subprocess
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def run_command(args: Sequence[str], timeout: float) -> Optional[str]:
    """
    Run an external tool and return its stdout, or None if it is missing, times out or exits non-zero.

    Collectors treat None as "no data" so a broken tool never fails a request.
    """
    try:
        proc = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except FileNotFoundError:
        logger.warning("Command not found: %s", args[0])
        return None
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out after %ss: %s", timeout, " ".join(args))
        return None
    except subprocess.CalledProcessError as exc:
        logger.warning(
            "Command failed rc=%s: %s stderr=%s",
            exc.returncode,
            " ".join(args),
            (exc.stderr or "").strip()[:500],
        )
        return None
    except OSError:
        logger.exception("Command could not be started: %s", " ".join(args))
        return None
    return proc.stdout
