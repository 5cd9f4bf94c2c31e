import os
import sys
from datetime import datetime, timezone


def _write_crash_log(exc: BaseException) -> None:
    """Best-effort crash log writer (covers failures before the excepthook is installed)."""
    try:
        import traceback
        here = os.path.dirname(os.path.abspath(__file__))
        logs = os.path.join(here, "user_data", "logs")
        os.makedirs(logs, exist_ok=True)
        ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        path = os.path.join(logs, f"crash_{ts}.log")
        with open(path, "w", encoding="utf-8") as f:
            f.write("Sandfall crash log\n")
            f.write(f"UTC: {ts}\n\n")
            f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
        print(f"[Sandfall] Crash log written to: {path}")
    except OSError as e:
        print(f"[Sandfall] Could not write crash log: {e}", file=sys.stderr)


def main() -> None:
    from app.crash_reporter import install_global
    from qt.core_bridge import CoreBridge
    from qt.qt_app import run_qt

    here = os.path.dirname(os.path.abspath(__file__))
    print(f"=== SANDFALL STARTUP ===\nrun_root: {here}\n=== END STARTUP ===")

    install_global()
    core = CoreBridge()
    run_qt(core)


if __name__ == "__main__":
    try:
        main()
    except BaseException as e:
        _write_crash_log(e)
        raise
