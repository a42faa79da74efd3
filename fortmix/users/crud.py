from sqlalchemy.orm import Session

from fortmix.users.models import User


def create_user(db: Session, username: str, hashed_password: str, name: str, role: str) -> User:
    """Stage a new user; the caller commits together with its audit entry."""
    new_user = User(
        username=username,
        password=hashed_password,
        name=name,
        role=role,
    )
    db.add(new_user)
    db.flush()
    return new_user


def get_user_by_username(db: Session, username: str):
    return db.query(User).filter(User.username == username.strip().lower()).first()


def get_user_by_id(db: Session, user_id: int):
    return db.query(User).filter(User.id == user_id).first()


def get_all_users(db: Session):
    return db.query(User).order_by(User.name.asc(), User.id.asc()).all()


def count_users(db: Session) -> int:
    return db.query(User).count()
