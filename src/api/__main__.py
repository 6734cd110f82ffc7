import uvicorn

from api.app import create_app
from utils import config

if __name__ == "__main__":
    uvicorn.run(create_app(), host=config.HOST, port=config.PORT)
