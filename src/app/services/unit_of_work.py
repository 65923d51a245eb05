from abc import ABC, abstractmethod

from src.app.repositories.session_repository import ISessionRepository


class UnitOfWork(ABC):
    """
    Transaction boundary for one session lifecycle operation.

    Used as ``async with uow:``. ``sessions`` is bound on entry; whatever
    has not been committed when the block exits is rolled back. Operations
    that only read must still commit before returning so rows already
    handed to callers stay loaded.
    """

    sessions: ISessionRepository

    @abstractmethod
    async def __aenter__(self) -> "UnitOfWork":
        pass

    @abstractmethod
    async def __aexit__(self, *args) -> None:
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass
