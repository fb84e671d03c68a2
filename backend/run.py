import uvicorn

from connect4.config import get_config

if __name__ == "__main__":
    config = get_config()
    uvicorn.run("connect4.main:app", host=config.host, port=config.port, log_level=config.log_level.lower())
