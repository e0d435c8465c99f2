"""
Persistence for analysed documents and the wallet reward ledger.

Both collaborators sit behind small abstract interfaces so the pipeline only
depends on `create(...)` and `reward_for_analysis(...)`. The SQLAlchemy
implementations below are what the API and the batch runner use; any
database SQLAlchemy supports works, SQLite is the default.
"""

import uuid
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Integer, String, create_engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import PersistenceError, RewardError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==============================================================================
# Models
# ==============================================================================

class Base(DeclarativeBase):
    pass


class UserAccount(Base):
    """A wallet's token balance and analysis history."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Unique: a wallet gets its first-analysis bonus at most once
    wallet_address: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_analyses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_analysis_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class HealthAnalysisRecord(Base):
    """One stored analysis, as returned by Gemini and validated."""
    __tablename__ = "health_analyses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    wallet_address: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    file_type: Mapped[str] = mapped_column(String(255), nullable=False)
    format: Mapped[str] = mapped_column(String(16), default="json", nullable=False)
    analysis_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


def create_session_factory(database_config: dict) -> sessionmaker:
    """Builds the engine, creates missing tables and returns a session factory."""
    url = database_config.get('url', 'sqlite:///health_analyses.db')
    engine_kwargs: Dict[str, Any] = {'echo': database_config.get('echo', False)}
    if url.startswith('sqlite'):
        engine_kwargs['connect_args'] = {'check_same_thread': False}
        if url in ('sqlite://', 'sqlite:///:memory:'):
            # One shared connection, otherwise every session sees an empty database
            engine_kwargs['poolclass'] = StaticPool

    engine = create_engine(url, **engine_kwargs)
    Base.metadata.create_all(engine)
    logging.info(f"Database ready at {engine.url.render_as_string(hide_password=True)}")
    return sessionmaker(bind=engine, expire_on_commit=False)


# ==============================================================================
# Analysis store
# ==============================================================================

class AnalysisStore(ABC):
    @abstractmethod
    def create(
        self,
        wallet_address: str,
        file_name: str,
        file_size: int,
        file_type: str,
        format: str,
        analysis_data: Dict[str, Any],
    ) -> HealthAnalysisRecord:
        pass

    @abstractmethod
    def list_for_wallet(self, wallet_address: str) -> List[HealthAnalysisRecord]:
        pass


class SqlAnalysisStore(AnalysisStore):
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def create(self, wallet_address, file_name, file_size, file_type, format, analysis_data):
        record = HealthAnalysisRecord(
            wallet_address=wallet_address,
            file_name=file_name,
            file_size=file_size,
            file_type=file_type,
            format=format,
            analysis_data=analysis_data,
        )
        try:
            with self.session_factory() as session, session.begin():
                session.add(record)
        except SQLAlchemyError as e:
            logging.error(f"Failed to save analysis for {wallet_address}: {e}", exc_info=True)
            raise PersistenceError(str(e)) from e
        logging.info(f"Saved analysis {record.id} for wallet {wallet_address}.")
        return record

    def list_for_wallet(self, wallet_address):
        """Newest first."""
        stmt = (
            select(HealthAnalysisRecord)
            .where(HealthAnalysisRecord.wallet_address == wallet_address)
            .order_by(HealthAnalysisRecord.created_at.desc())
        )
        with self.session_factory() as session:
            return list(session.scalars(stmt))


# ==============================================================================
# Reward ledger
# ==============================================================================

@dataclass(frozen=True)
class TokenRewardOutcome:
    earned_tokens: int
    total_tokens: int
    is_new_user: bool


class RewardLedger(ABC):
    @abstractmethod
    def reward_for_analysis(self, wallet_address: str) -> TokenRewardOutcome:
        pass

    @abstractmethod
    def get_account(self, wallet_address: str) -> Optional[UserAccount]:
        pass


class SqlRewardLedger(RewardLedger):
    """
    Credits wallets for completed analyses.

    Every analysis earns `tokens_per_analysis`; the first analysis of a wallet
    additionally earns `new_user_bonus`.
    """

    def __init__(self, session_factory: sessionmaker, config: dict):
        self.session_factory = session_factory
        self.tokens_per_analysis = int(config.get('tokens_per_analysis', 10))
        self.new_user_bonus = int(config.get('new_user_bonus', 100))

    def reward_for_analysis(self, wallet_address):
        try:
            try:
                outcome = self._apply_reward(wallet_address)
            except IntegrityError:
                # Another request created the account first; it got the bonus
                logging.warning(f"Concurrent first reward for {wallet_address}, crediting as existing user.")
                outcome = self._apply_reward(wallet_address)
        except SQLAlchemyError as e:
            logging.error(f"Failed to reward wallet {wallet_address}: {e}", exc_info=True)
            raise RewardError(str(e)) from e

        logging.info(
            f"Rewarded {wallet_address} with {outcome.earned_tokens} tokens "
            f"(total {outcome.total_tokens}, new user: {outcome.is_new_user})."
        )
        return outcome

    def _apply_reward(self, wallet_address: str) -> TokenRewardOutcome:
        with self.session_factory() as session, session.begin():
            account = session.scalars(
                select(UserAccount).where(UserAccount.wallet_address == wallet_address).with_for_update()
            ).first()
            is_new_user = account is None
            if is_new_user:
                account = UserAccount(wallet_address=wallet_address, tokens=0, total_analyses=0)
                session.add(account)

            earned = self.tokens_per_analysis + (self.new_user_bonus if is_new_user else 0)
            account.tokens += earned
            account.total_analyses += 1
            account.last_analysis_date = utcnow()
            session.flush()
            return TokenRewardOutcome(
                earned_tokens=earned,
                total_tokens=account.tokens,
                is_new_user=is_new_user,
            )

    def get_account(self, wallet_address):
        with self.session_factory() as session:
            return session.scalars(
                select(UserAccount).where(UserAccount.wallet_address == wallet_address)
            ).first()
