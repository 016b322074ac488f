from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Text


class User(BaseModel, Base):
    __tablename__ = "users"

    username = Column(String(64), nullable=False, unique=True, index=True)  # stored lowercase
    email = Column(String(255), nullable=False, unique=True, index=True)  # stored lowercase
    full_name = Column(String(255), nullable=False, index=True)
    avatar = Column(String(512), nullable=False)  # public URL from the media store
    cover_image = Column(String(512), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    # Last refresh token issued; NULL means no active refresh session
    refresh_token = Column(Text, nullable=True)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def __repr__(self):
        return f"<User {self.username}>"
