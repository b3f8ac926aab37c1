"""initial sweet shop schema

Revision ID: 0001_initial_sweet_shop
Revises:
Create Date: 2026-10-17 00:00:00.000000

Creates the three tables the API needs:
- users: accounts with bcrypt password hash and role
- sweets: catalog with real-valued price and stock
- purchases: append-only ledger with a snapshot of the sweet at purchase time
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_sweet_shop'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # users
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),  # bcrypt hash
        sa.Column('role', sa.String(length=16), nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.CheckConstraint("role IN ('user', 'admin')", name='ck_users_role'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_username', 'users', ['username'])
    op.create_index('ix_users_email', 'users', ['email'])

    # ============================================================================
    # sweets
    # ============================================================================
    op.create_table(
        'sweets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        # Stock in continuous units (e.g. kg)
        sa.Column('quantity', sa.Float(), nullable=False, server_default='0'),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_sweets_name'),
        sa.CheckConstraint('price >= 0', name='ck_sweets_price_non_negative'),
        sa.CheckConstraint('quantity >= 0', name='ck_sweets_quantity_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sweets_category', 'sweets', ['category'])
    op.create_index('ix_sweets_created_at', 'sweets', ['created_at'])

    # ============================================================================
    # purchases: append-only ledger
    # ============================================================================
    # sweet_name/category/price are copied from the sweet at purchase time so
    # history survives later edits and deletes.
    op.create_table(
        'purchases',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('sweet_id', sa.Integer(), nullable=False),
        sa.Column('sweet_name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('purchased_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['sweet_id'], ['sweets.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_purchases_quantity_positive'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_purchases_user_id', 'purchases', ['user_id'])
    op.create_index('ix_purchases_sweet_id', 'purchases', ['sweet_id'])
    op.create_index('ix_purchases_purchased_at', 'purchases', ['purchased_at'])
    op.create_index('ix_purchases_user_purchased_at', 'purchases', ['user_id', 'purchased_at'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('purchases')
    op.drop_table('sweets')
    op.drop_table('users')
