#bookshop/data/models/cart.py
from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import relationship

from bookshop.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, unique=True)

    # last mutation, drives expiry
    updated_at = Column(DateTime(timezone=True), nullable=False, index=True)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
