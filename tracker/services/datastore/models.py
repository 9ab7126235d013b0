"""SQLAlchemy models for database integration."""

from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, \
    Text, UniqueConstraint
from sqlalchemy.orm import relationship

db: SQLAlchemy = SQLAlchemy()


class DBUser(db.Model):
    """Persistence for :class:`domain.User`."""

    __tablename__ = 'users'

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default='USER')


class DBProject(db.Model):
    """Persistence for :class:`domain.Project`."""

    __tablename__ = 'projects'

    project_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(500))
    start_date = Column(Date)
    created_at = Column(DateTime, default=datetime.now)
    owner_id = Column(ForeignKey('users.user_id', ondelete='SET NULL'),
                      nullable=True)

    owner = relationship('DBUser', lazy='joined')
    students = relationship('DBStudent', back_populates='project',
                            cascade='all, delete-orphan')
    tasks = relationship('DBTask', back_populates='project',
                         cascade='all, delete-orphan')


class DBStudent(db.Model):
    """Persistence for :class:`domain.Student`."""

    __tablename__ = 'students'
    __table_args__ = (
        UniqueConstraint('first_name', 'last_name', name='uq_student_name'),
    )

    student_id = Column(Integer, primary_key=True, autoincrement=True)
    code_number = Column(String(20), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date)
    title = Column(String(200), nullable=False)
    description = Column(String(1000))
    created_at = Column(DateTime, default=datetime.now)
    project_id = Column(ForeignKey('projects.project_id'), nullable=False)
    owner_id = Column(ForeignKey('users.user_id', ondelete='SET NULL'),
                      nullable=True)

    project = relationship('DBProject', back_populates='students',
                           lazy='joined')
    owner = relationship('DBUser', lazy='joined')


class DBTask(db.Model):
    """Persistence for :class:`domain.Task`."""

    __tablename__ = 'tasks'

    task_id = Column(Integer, primary_key=True, autoincrement=True)
    code_number = Column(String(20), unique=True, nullable=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    date_of_birth = Column(Date)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    status = Column(String(50), nullable=False)
    priority = Column(String(50))
    due_date = Column(Date)
    created_at = Column(DateTime, default=datetime.now)
    project_id = Column(ForeignKey('projects.project_id'), nullable=False)
    owner_id = Column(ForeignKey('users.user_id', ondelete='SET NULL'),
                      nullable=True)

    project = relationship('DBProject', back_populates='tasks',
                           lazy='joined')
    owner = relationship('DBUser', lazy='joined')
