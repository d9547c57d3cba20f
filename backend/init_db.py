"""初始化数据库：建表并写入基础数据（币种、公司、计量单位、超级管理员）"""
import asyncio
import logging

from erp.db.init_db import init_db

logging.basicConfig(level=logging.INFO)

if __name__ == "__main__":
    asyncio.run(init_db())
