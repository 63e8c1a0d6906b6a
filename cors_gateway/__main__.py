import uvicorn

from cors_gateway.config import GatewayConfig
from cors_gateway.server import create_app
from cors_gateway.vars import LOG_LEVEL


def main() -> None:
    config = GatewayConfig.from_env()
    uvicorn.run(
        create_app(config),
        host=config.listen_host,
        port=config.listen_port,
        log_level=LOG_LEVEL,
    )


if __name__ == "__main__":
    main()
