from sqlalchemy import Column, Enum, Float, ForeignKey, Integer, Text, UniqueConstraint, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


WEEKDAYS = ('mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun')
SLOT_STATUSES = ('available', 'booked', 'blocked_by_admin', 'holiday')
BOOKING_STATUSES = (
    'pending_confirmation', 'confirmed', 'scheduled', 'en_route', 'in_progress',
    'completed', 'rejected', 'cancelled_by_patient', 'cancelled_by_system',
)
PAYMENT_METHODS = ('cash_on_visit', 'transfer_on_visit')
PAYMENT_STATUSES = ('awaiting', 'paid', 'failed')


class WeeklySchedule(Base):
    __tablename__ = 'weekly_schedule'

    weekday = Column(Enum(*WEEKDAYS, name='weekday'), nullable=False, unique=True)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class Services(Base):
    __tablename__ = 'services'

    name = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    duration_minutes = Column(Integer, nullable=False, server_default=text('60'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    description = Column(Text)
    category = Column(Text)

    bookings = relationship('Bookings', back_populates='service')


class Users(Base):
    __tablename__ = 'users'

    name = Column(Text, nullable=False)
    role = Column(Enum('patient', 'admin', name='user_role'), nullable=False, server_default=text("'patient'"))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    email = Column(Text)
    phone = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    bookings = relationship('Bookings', back_populates='patient')
    notifications = relationship('Notifications', back_populates='user')


class Slots(Base):
    __tablename__ = 'slots'
    __table_args__ = (
        UniqueConstraint('date', 'start_time'),
    )

    date = Column(Text, nullable=False, index=True)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    status = Column(Enum(*SLOT_STATUSES, name='slot_status'), nullable=False, server_default=text("'available'"))
    id = Column(Integer, primary_key=True)
    booking_id = Column(ForeignKey('bookings.id', ondelete='SET NULL'))
    note = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    booking = relationship('Bookings', back_populates='slots')


class Bookings(Base):
    __tablename__ = 'bookings'

    booking_code = Column(Text, nullable=False, unique=True)
    patient_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    date = Column(Text, nullable=False, index=True)
    start_time = Column(Text, nullable=False)
    address = Column(Text, nullable=False)
    complaint = Column(Text, nullable=False)
    status = Column(Enum(*BOOKING_STATUSES, name='booking_status'), nullable=False, server_default=text("'pending_confirmation'"))
    payment_method = Column(Enum(*PAYMENT_METHODS, name='payment_method'), nullable=False, server_default=text("'cash_on_visit'"))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    notes = Column(Text)
    coordinates = Column(Text)
    rejection_reason = Column(Text)
    cancel_reason = Column(Text)
    admin_notes = Column(Text)
    confirmed_at = Column(Text)
    completed_at = Column(Text)
    rating = Column(Integer)
    review = Column(Text)
    reviewed_at = Column(Text)

    patient = relationship('Users', back_populates='bookings')
    service = relationship('Services', back_populates='bookings')
    payment = relationship('Payments', uselist=False, back_populates='booking')
    slots = relationship('Slots', back_populates='booking')


class Payments(Base):
    __tablename__ = 'payments'

    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, unique=True)
    method = Column(Enum(*PAYMENT_METHODS, name='payment_method'), nullable=False)
    status = Column(Enum(*PAYMENT_STATUSES, name='payment_status'), nullable=False, server_default=text("'awaiting'"))
    amount = Column(Float, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    paid_at = Column(Text)
    note = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    booking = relationship('Bookings', back_populates='payment')


class Notifications(Base):
    __tablename__ = 'notifications'

    user_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Integer, nullable=False, server_default=text('0'))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    booking_id = Column(ForeignKey('bookings.id', ondelete='SET NULL'))
    link = Column(Text)

    user = relationship('Users', back_populates='notifications')
