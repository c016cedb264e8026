"""
Main entry point for the HTTP streaming server

@.architecture
Incoming: none --- {entry point, process environment, streaming.toml}
Processing: main() --- {3 jobs: config_loading, logging_setup, server_startup}
Outgoing: core/server.py, Network (HTTP) --- {FileStreamingServer bound to the configured port}
"""

from config.settings import get_settings
from core.server import FileStreamingServer
from monitoring import configure_from_preset, ENVIRONMENT_PRESETS


def main() -> None:
    settings = get_settings()

    configure_from_preset(
        ENVIRONMENT_PRESETS[settings.environment],
        level=settings.monitoring.log_level,
        format_type=settings.monitoring.log_format,
    )

    server = FileStreamingServer(
        settings.storage.path,
        port=settings.server.port,
        host=settings.server.host,
        settings=settings,
    )
    server.run()


if __name__ == "__main__":
    main()
