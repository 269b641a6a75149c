from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.db import get_db
from core.errors import NotFound
from models.address import Address
from models.user import User
from schemas.common import MessageOut
from schemas.users import AddressCreate, AddressUpdate, AddressOut

router = APIRouter(prefix="/addresses", tags=["addresses"])


def _get_own_address(db: Session, address_id: str, user: User) -> Address:
    # Other users' addresses are reported as missing
    address = db.query(Address).filter(Address.id == address_id, Address.user_id == user.id).one_or_none()
    if not address:
        raise NotFound("Address not found")
    return address


def _clear_default(db: Session, user_id: str, keep_id: str | None = None) -> None:
    query = db.query(Address).filter(Address.user_id == user_id, Address.is_default.is_(True))
    if keep_id:
        query = query.filter(Address.id != keep_id)
    query.update({Address.is_default: False}, synchronize_session="fetch")


@router.get("", response_model=List[AddressOut])
def list_addresses(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(Address)
        .filter(Address.user_id == current_user.id)
        .order_by(Address.is_default.desc(), Address.created_at.desc())
        .all()
    )


@router.post("", response_model=AddressOut, status_code=201)
def create_address(data: AddressCreate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if data.is_default:
        _clear_default(db, current_user.id)
    address = Address(user_id=current_user.id, **data.model_dump())
    db.add(address)
    db.commit()
    db.refresh(address)
    return address


@router.get("/{address_id}", response_model=AddressOut)
def get_address(address_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _get_own_address(db, address_id, current_user)


@router.patch("/{address_id}", response_model=AddressOut)
def update_address(
    address_id: str,
    data: AddressUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    address = _get_own_address(db, address_id, current_user)
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("is_default"):
        _clear_default(db, current_user.id, keep_id=address.id)
    for field, value in update_data.items():
        setattr(address, field, value)
    db.commit()
    db.refresh(address)
    return address


@router.delete("/{address_id}", response_model=MessageOut)
def delete_address(address_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    address = _get_own_address(db, address_id, current_user)
    db.delete(address)
    db.commit()
    return MessageOut(message="Address deleted")
