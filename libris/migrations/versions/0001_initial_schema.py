"""initial schema: users, books, borrowings

Revision ID: 0001
Revises:
Create Date: 2025-06-01 00:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_LOAN_CLAUSE = "status IN ('borrowed', 'overdue')"


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('surname', sa.String(50), nullable=False),
        sa.Column('firstname', sa.String(50), nullable=False),
        sa.Column('middle_initial', sa.String(1), nullable=True),
        sa.Column('username', sa.String(30), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_table(
        'books',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('author', sa.String(255), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('publication', sa.String(255), nullable=False),
        sa.Column('copyright_year', sa.Integer(), nullable=False),
        sa.Column('physical_description', sa.String(500), nullable=False),
        sa.Column('series', sa.String(255), nullable=True),
        sa.Column('isbn', sa.String(20), nullable=False),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('call_number', sa.String(50), nullable=False),
        sa.Column('accession_number', sa.String(50), nullable=False),
        sa.Column('location', sa.String(100), nullable=False),
        sa.Column('total_copies', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('available_copies', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.CheckConstraint('total_copies >= 1', name='ck_books_total_copies'),
        sa.CheckConstraint(
            'available_copies >= 0 AND available_copies <= total_copies',
            name='ck_books_available_copies'
        ),
    )
    op.create_index('ix_books_title', 'books', ['title'])
    op.create_index('ix_books_isbn', 'books', ['isbn'])
    op.create_table(
        'borrowings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('books.id', ondelete='CASCADE'), nullable=False),
        sa.Column('borrowed_date', sa.DateTime(), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=False),
        sa.Column('returned_date', sa.DateTime(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('borrowed', 'overdue', 'returned', name='borrowing_status', create_constraint=True),
            nullable=False,
            server_default='borrowed',
        ),
        sa.Column('notes', sa.Text()),
    )
    op.create_index('ix_borrowings_user_id', 'borrowings', ['user_id'])
    op.create_index('ix_borrowings_book_id', 'borrowings', ['book_id'])
    op.create_index(
        'uq_borrowings_active_loan', 'borrowings', ['user_id', 'book_id'], unique=True,
        sqlite_where=sa.text(ACTIVE_LOAN_CLAUSE),
        postgresql_where=sa.text(ACTIVE_LOAN_CLAUSE),
    )


def downgrade() -> None:
    op.drop_index('uq_borrowings_active_loan', table_name='borrowings')
    op.drop_index('ix_borrowings_book_id', table_name='borrowings')
    op.drop_index('ix_borrowings_user_id', table_name='borrowings')
    op.drop_table('borrowings')
    op.drop_index('ix_books_isbn', table_name='books')
    op.drop_index('ix_books_title', table_name='books')
    op.drop_table('books')
    op.drop_table('users')
    sa.Enum(name='borrowing_status').drop(op.get_bind(), checkfirst=True)
