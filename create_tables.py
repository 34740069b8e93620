from app.db.base import Base
from app.db.session import engine
from app.db.models.badge import Badge, UserBadgeProgress

if __name__ == "__main__":
    print("Creating tables...")
    Base.metadata.create_all(bind=engine, tables=[Badge.__table__, UserBadgeProgress.__table__])
    print("Tables created.")
