from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from models.base_model import BaseModel, Base


class ReadingListEntry(BaseModel, Base):
    __tablename__ = "reading_list"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_reading_list_user_book"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Open Library work id, e.g. "OL45804W"
    book_id = Column(String(64), nullable=False)

    user = relationship("User", back_populates="reading_list")

    def __repr__(self):
        return f"<ReadingListEntry user_id={self.user_id} book_id={self.book_id!r}>"
