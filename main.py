"""
PokeBridge主入口
启动 HTTP API（宝可梦查询与翻译）
"""

import uvicorn
from loguru import logger

from pokebridge.settings import global_settings
from pokebridge.utils import setup_logging


def main() -> None:
    """主函数"""
    setup_logging(global_settings.log_level)
    logger.info(
        f"Starting PokeBridge on {global_settings.api_host}:{global_settings.api_port}..."
    )

    uvicorn.run(
        "pokebridge.api.app:app",
        host=global_settings.api_host,
        port=global_settings.api_port,
        log_level=global_settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
