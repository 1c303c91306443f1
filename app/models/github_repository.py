"""GitHub repository model mapped to `github_repositories` table."""

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, String, Text

from app.config.database import Base


class GitHubRepository(Base):
    """Repository fetched from the GitHub search API, keyed by GitHub's id."""

    __tablename__ = "github_repositories"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    owner_name = Column(String(255), nullable=False)
    language = Column(String(100), nullable=True)
    stars_count = Column(Integer, nullable=False, default=0)
    forks_count = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_github_repositories_stars", "stars_count"),
        Index("idx_github_repositories_language", "language"),
    )

    def __repr__(self):
        return f"<GitHubRepository {self.owner_name}/{self.name} ({self.id})>"
