# Qt entry for `python -m app`
from app.crash_reporter import install_global
from qt.core_bridge import CoreBridge
from qt.qt_app import run_qt

def main() -> None:
    install_global()
    core = CoreBridge()
    run_qt(core)

if __name__ == "__main__":
    main()
