import asyncio
import sys
import os

# Adiciona backend/ ao PYTHONPATH para importar app.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from app.core.database import engine
from app.models import Base

async def reset():
    print("Conectando ao banco, removendo tabelas de eventos financeiros...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        print("Tabelas removidas. Criando novamente...")
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Banco resetado com sucesso!")

if __name__ == "__main__":
    asyncio.run(reset())
