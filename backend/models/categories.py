from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import now


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=now)

    items = relationship("InventoryItem", back_populates="category")
    history = relationship("CategoryHistory", back_populates="category", cascade="all, delete-orphan")
