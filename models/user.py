from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Text


class User(BaseModel, Base):
    __tablename__ = "users"
    fullname = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    # the public handle, stored lowercased
    username = Column(String(64), nullable=False, unique=True, index=True)
    avatar = Column(String(512), nullable=True)
    cover = Column(String(512), nullable=True)
    password_hash = Column(String(255), nullable=False)
    refresh_token = Column(Text, nullable=True)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
