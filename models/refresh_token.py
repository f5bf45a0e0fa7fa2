"""
RefreshToken model: the set of refresh tokens currently honored for renewal.
Fields:
- token (primary key) - the signed token value itself
- user_id (Integer) - FK to users.id
- created_at

There is no expiry column. A token is valid for renewal while it is both
correctly signed and present in this table; deleting the row revokes it.
"""
from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship
from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(512), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="refresh_tokens")

    def __repr__(self):
        return f"<RefreshToken user_id={self.user_id}>"
