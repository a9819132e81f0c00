"""Async SQLAlchemy engine and session factory for the KPI tables."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config.settings import settings

_ASYNC_SCHEME = "postgresql+psycopg://"
_LOCAL_HOSTS = ("", "localhost", "127.0.0.1")


def database_url(url: str, sslmode: str = "auto") -> str:
    """Rewrite *url* for the async psycopg driver and apply *sslmode*.

    ``auto`` adds ``sslmode=require`` for non-local hosts; an empty value
    leaves the URL alone; any other value is passed through as-is. An
    explicit ``sslmode`` already in the URL always wins.
    """
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            url = _ASYNC_SCHEME + url[len(scheme):]
            break

    if not sslmode or "sslmode=" in url:
        return url
    if sslmode == "auto":
        if _host(url) in _LOCAL_HOSTS:
            return url
        sslmode = "require"
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}sslmode={sslmode}"


def _host(url: str) -> str:
    netloc = url.split("://", 1)[-1].split("/", 1)[0]
    return netloc.rsplit("@", 1)[-1].split(":", 1)[0]


engine = create_async_engine(
    database_url(settings.database_url, settings.database_sslmode),
    echo=False,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncSession:
    """Yield an async database session."""
    async with async_session() as session:
        yield session
