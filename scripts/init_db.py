"""
@file: scripts/init_db.py
@description: Создание таблиц sales_orders, sales_order_lines, kv_entries и таблиц sqlalchemy_celery_beat
@dependencies: sqlalchemy_celery_beat.session.ModelBase, sqlalchemy, app.core.database
"""

from sqlalchemy import text
from sqlalchemy_celery_beat.session import ModelBase

from app.core.database import engine, create_tables
from app.core.settings import settings, mask_sensitive_value


def init_celery_beat_tables() -> None:
    if engine.dialect.name == "postgresql":
        with engine.connect() as conn:
            conn.execute(text("CREATE SCHEMA IF NOT EXISTS celery_schema;"))
            conn.commit()
    ModelBase.metadata.create_all(engine)


if __name__ == "__main__":
    print(f"Инициализация базы: {mask_sensitive_value('url', settings.database.url)}")
    create_tables()
    init_celery_beat_tables()
    print("Таблицы успешно созданы (или уже существуют)")
