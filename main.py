import logging
import tkinter as tk

from drone_service.config import LOG_FILE, LOG_LEVEL
from drone_service.engine import ServiceLifecycleEngine
from drone_service.logging_config import setup_logging
from drone_service.ui import AppUI

logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging(LOG_LEVEL, LOG_FILE)
    logger.info("Starting Icarus Drone Service")
    root = tk.Tk()
    engine = ServiceLifecycleEngine()
    AppUI(root, engine)
    root.mainloop()


if __name__ == "__main__":
    main()
