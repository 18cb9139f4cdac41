"""
SQL store for Password Arena.

Manages database connections and sessions and provides the persistence
operations used by the web layer: submissions, leaderboard, ban list and
request log.
"""

import logging
from typing import Any, Dict, List, Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, func
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import SQLAlchemyError

from storage.models import Base, BannedIP, RequestLog, Submission

logger = logging.getLogger(__name__)

MAX_PATH_LENGTH = 500
MAX_USER_AGENT_LENGTH = 200
DEFAULT_BAN_REASON = "Banned by admin"


class ArenaStore:
    """
    Database client with connection pooling and ORM support.

    Args:
        database_url: SQLAlchemy database URL
        pool_size: Connection pool size (ignored for SQLite)
        max_overflow: Max pool overflow connections (ignored for SQLite)
        pool_timeout: Pool timeout in seconds (ignored for SQLite)
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 10,
        max_overflow: int = 20,
        pool_timeout: int = 30,
    ):
        self.database_url = database_url

        if database_url.startswith("sqlite"):
            engine_args: Dict[str, Any] = {
                "connect_args": {"check_same_thread": False},
            }
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # Share the single in-memory database across threads
                engine_args["poolclass"] = StaticPool
        else:
            engine_args = {
                "pool_size": pool_size,
                "max_overflow": max_overflow,
                "pool_timeout": pool_timeout,
                "pool_pre_ping": True,
            }

        self.engine = create_engine(database_url, echo=False, **engine_args)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

        logger.info("Arena store initialized")

    @classmethod
    def from_config(cls, config) -> "ArenaStore":
        """
        Build a store from a DatabaseConfig section.

        Args:
            config: DatabaseConfig instance

        Returns:
            ArenaStore instance
        """
        return cls(
            database_url=config.database_url,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
        )

    def create_tables(self) -> None:
        """Create all database tables if they don't exist."""
        try:
            Base.metadata.create_all(self.engine)
            logger.info("Database tables ready")
        except SQLAlchemyError as e:
            logger.error(f"Error creating tables: {e}")
            raise

    @contextmanager
    def session(self):
        """
        Get a database session with automatic commit/rollback.

        Yields:
            Database session
        """
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            db.close()

    # Submissions

    def add_submission(self, record) -> Dict[str, Any]:
        """
        Persist a scored submission.

        Args:
            record: SubmissionRecord to store

        Returns:
            Stored row as a dictionary, including id and timestamp
        """
        with self.session() as db:
            row = Submission(
                name=record.name,
                score=record.score,
                rank=record.rank,
                crack=record.crack_estimate,
                ip=record.source_ip,
                geo=record.geo_label,
                risk=record.risk_level,
            )
            db.add(row)
            db.flush()
            logger.debug(f"Stored submission {row.id} from {record.source_ip}")
            return row.to_dict()

    def leaderboard(self, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Get the highest scoring submissions.

        Source addresses are left out of the public view.

        Args:
            limit: Maximum number of rows

        Returns:
            Rows ordered by score, highest first
        """
        with self.session() as db:
            rows = (
                db.query(Submission)
                .order_by(Submission.score.desc(), Submission.id.asc())
                .limit(limit)
                .all()
            )
            result = []
            for row in rows:
                data = row.to_dict()
                data.pop("ip")
                data.pop("id")
                result.append(data)
            return result

    def delete_submission(self, submission_id: int) -> bool:
        """
        Delete a submission.

        Args:
            submission_id: Submission id

        Returns:
            True if a row was deleted
        """
        with self.session() as db:
            deleted = db.query(Submission).filter(Submission.id == submission_id).delete()
            return deleted > 0

    # Ban list

    def is_banned(self, ip: str) -> bool:
        with self.session() as db:
            return db.get(BannedIP, ip) is not None

    def ban(self, ip: str, reason: Optional[str] = None) -> Dict[str, Any]:
        """
        Ban an address, replacing the reason if it is already banned.

        Args:
            ip: Address to ban
            reason: Reason shown to admins

        Returns:
            Ban entry as a dictionary
        """
        reason = reason or DEFAULT_BAN_REASON
        with self.session() as db:
            entry = db.get(BannedIP, ip)
            if entry is None:
                entry = BannedIP(ip=ip, reason=reason)
                db.add(entry)
            else:
                entry.reason = reason
            db.flush()
            logger.info(f"Banned {ip}: {reason}")
            return entry.to_dict()

    def unban(self, ip: str) -> bool:
        with self.session() as db:
            deleted = db.query(BannedIP).filter(BannedIP.ip == ip).delete()
            if deleted:
                logger.info(f"Unbanned {ip}")
            return deleted > 0

    # Request log

    def log_request(
        self, ip: str, method: str, path: str, user_agent: Optional[str]
    ) -> None:
        """
        Append a request log entry.

        Args:
            ip: Client address
            method: HTTP method
            path: Request path
            user_agent: User agent header, truncated
        """
        with self.session() as db:
            db.add(
                RequestLog(
                    ip=ip,
                    method=method,
                    path=path[:MAX_PATH_LENGTH],
                    ua=(user_agent or "")[:MAX_USER_AGENT_LENGTH],
                )
            )

    # Admin views

    def admin_snapshot(
        self,
        submission_limit: int = 200,
        log_limit: int = 300,
    ) -> Dict[str, Any]:
        """
        Collect everything the admin dashboard shows.

        Args:
            submission_limit: Most recent submissions to include
            log_limit: Most recent request log entries to include

        Returns:
            Dictionary with subs, banned, logs and stats
        """
        with self.session() as db:
            subs = (
                db.query(Submission)
                .order_by(Submission.id.desc())
                .limit(submission_limit)
                .all()
            )
            banned = db.query(BannedIP).order_by(BannedIP.ts.desc()).all()
            logs = (
                db.query(RequestLog)
                .order_by(RequestLog.id.desc())
                .limit(log_limit)
                .all()
            )
            total, avg, top = db.query(
                func.count(Submission.id),
                func.avg(Submission.score),
                func.max(Submission.score),
            ).one()

            return {
                "subs": [s.to_dict() for s in subs],
                "banned": [b.to_dict() for b in banned],
                "logs": [entry.to_dict() for entry in logs],
                "stats": {
                    "total": total,
                    "avg": int(round(avg)) if avg is not None else None,
                    "top": top,
                },
            }

    def close(self) -> None:
        """Close database engine and connections."""
        self.engine.dispose()
        logger.info("Arena store closed")
