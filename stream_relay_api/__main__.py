# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

import uvicorn

from stream_relay_api.core.config import Settings


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(
        "stream_relay_api.main:app",
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
