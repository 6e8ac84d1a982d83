import atexit
import os
import signal
import sys

from qreview import create_app, shutdown_app

app = create_app()
atexit.register(shutdown_app, app)


def _handle_signal(signum, _frame):
    app.logger.info("%s received, shutting down gracefully", signal.Signals(signum).name)
    sys.exit(0)


signal.signal(signal.SIGTERM, _handle_signal)
signal.signal(signal.SIGINT, _handle_signal)


if __name__ == "__main__":
    app.run(host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "5000")))
