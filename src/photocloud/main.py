"""
Application Initialization
==========================
This module wires the Model, the Controllers and the View together and starts
the Qt Event Loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Configures logging (level/file can be overridden from the environment).
2. Creates the QApplication.
3. Instantiates the Main Window, which owns the controllers and the viewer.
"""
import os
import sys

from PySide6.QtWidgets import QApplication

from photocloud.logging_config import setup_logging
from photocloud.view.main_window import MainWindow, VISIBLE_APP_NAME


def main() -> None:
    # 1. Setup Logging (Console + Optional File)
    # e.g. PHOTOCLOUD_LOG_LEVEL=DEBUG PHOTOCLOUD_LOG_FILE=app_debug.log
    setup_logging()

    # 2. Create the Qt Application
    os.environ.setdefault("QT_ENABLE_HIGHDPI_SCALING", "1")
    app = QApplication(sys.argv)
    app.setApplicationName(VISIBLE_APP_NAME)

    # 3. Initialize the Main Window
    window = MainWindow()
    window.show()

    # 4. Start Event Loop
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
