"""Entry point for k3dterm: python -m k3dterm"""

import logging

from k3dterm.app import K3dTerm
from k3dterm.core.config import K3dConfig


def main() -> None:
    config = K3dConfig.from_env()
    # the terminal belongs to the UI, so log records only go to a file
    if config.log_file:
        logging.basicConfig(
            filename=config.log_file,
            level=config.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.getLogger().addHandler(logging.NullHandler())
    app = K3dTerm(config=config)
    app.run()


if __name__ == "__main__":
    main()
