"""
数据库Repository层 - 封装宝可梦种族的数据访问逻辑
"""

import asyncio
from datetime import timezone

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from pokebridge.datastore.models import PokemonRaceDB
from pokebridge.domain.errors import (
    Result,
    not_found_error,
    persistence_error,
    validation_error,
)
from pokebridge.domain.models import PokemonRace, TranslationType
from pokebridge.utils import normalize_name


def _aware(value):
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_domain(row: PokemonRaceDB) -> PokemonRace:
    """数据库行 -> 领域对象"""
    return PokemonRace(
        id=row.id,
        name=row.name,
        description=row.description,
        habitat=row.habitat,
        is_legendary=row.is_legendary,
        translations={
            TranslationType(key): text for key, text in (row.translations or {}).items()
        },
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _apply(row: PokemonRaceDB, pokemon: PokemonRace) -> None:
    """把可变字段写回数据库行（description 创建后不再修改）"""
    row.habitat = pokemon.habitat
    row.is_legendary = pokemon.is_legendary
    row.translations = {t.value: text for t, text in pokemon.translations.items()}
    row.updated_at = pokemon.updated_at


class PokemonSqlRepository:
    """
    宝可梦种族Repository

    每次操作使用独立的会话，可在并发请求间共享。
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_by_name(self, name: str) -> Result[PokemonRace]:
        """按名称查询（大小写不敏感）"""
        if not name or not name.strip():
            return Result.failure(validation_error("name", "Name cannot be null or empty"))

        normalized = normalize_name(name)
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(PokemonRaceDB).where(func.lower(PokemonRaceDB.name) == normalized)
                )
                row = result.scalars().first()
                if row is None:
                    return Result.failure(not_found_error(name))
                return Result.success(to_domain(row))
        except asyncio.CancelledError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Database error while loading pokemon '{name}': {e}")
            return Result.failure(
                persistence_error("An error occurred while accessing the database")
            )

    async def save(self, pokemon: PokemonRace) -> Result[PokemonRace]:
        """按 id 插入或更新"""
        if pokemon is None:
            return Result.failure(validation_error("pokemon", "Pokemon cannot be null"))

        async with self._session_factory() as session:
            try:
                row = await session.get(PokemonRaceDB, pokemon.id)
                if row is None:
                    row = PokemonRaceDB(
                        id=pokemon.id,
                        name=pokemon.name,
                        description=pokemon.description,
                        created_at=pokemon.created_at,
                    )
                    _apply(row, pokemon)
                    session.add(row)
                    stored = pokemon.copy()
                else:
                    stored = to_domain(row)
                    stored.update_from(pokemon)
                    _apply(row, stored)

                await session.commit()
                logger.debug(f"Saved pokemon '{pokemon.name}' (id={pokemon.id})")
                return Result.success(stored)

            except asyncio.CancelledError:
                await session.rollback()
                raise
            except IntegrityError as e:
                await session.rollback()
                logger.error(f"Integrity error while saving pokemon '{pokemon.name}': {e}")
                if "unique" in str(e.orig).lower():
                    return Result.failure(
                        persistence_error(
                            f"A pokemon with name '{pokemon.name}' already exists"
                        )
                    )
                return Result.failure(
                    persistence_error("An error occurred while saving to the database")
                )
            except StaleDataError as e:
                await session.rollback()
                logger.warning(f"Concurrent update of pokemon '{pokemon.name}': {e}")
                return Result.failure(
                    persistence_error(
                        "The pokemon was modified by another process. Please try again."
                    )
                )
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Database error while saving pokemon '{pokemon.name}': {e}")
                return Result.failure(
                    persistence_error("An error occurred while saving to the database")
                )
            except Exception as e:
                await session.rollback()
                logger.exception(f"Unexpected error while saving pokemon '{pokemon.name}': {e}")
                return Result.failure(
                    persistence_error(
                        "An unexpected error occurred while saving to the database"
                    )
                )
