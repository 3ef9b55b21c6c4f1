import asyncio

from authflow.app.core.config import get_settings
from authflow.app.db.base import create_tables
from authflow.app.db.session import create_engine_from_settings


async def init_models():
    engine = create_engine_from_settings(get_settings())
    try:
        await create_tables(engine)
    finally:
        await engine.dispose()
    print(">>> Tables Created Successfully!")


if __name__ == "__main__":
    asyncio.run(init_models())
