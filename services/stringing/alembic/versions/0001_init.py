from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('pickup_code', sa.String(4), nullable=False),
        sa.Column('customer_name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('stripe_session_id', sa.String(255), nullable=False),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True),
        sa.Column('order_type', sa.String(20), nullable=False),
        sa.Column('item_description', sa.String(1000), nullable=False),
        sa.Column('line_items', sa.JSON, nullable=True),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('dropped_off_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('picked_up_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('stringing_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('strung_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ready_for_pickup_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('picked_up_by_customer_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('review_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_orders_pickup_code', 'orders', ['pickup_code'])
    op.create_index('ix_orders_email', 'orders', ['email'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'inventory',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('price_id', sa.String(255), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('category', sa.String(20), nullable=False),
        sa.Column('stock', sa.Integer, nullable=False, server_default='0'),
        sa.Column('description', sa.String(2000), nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('show_in_shop', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('show_in_builder', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('player_type', sa.String(20), nullable=True),
        sa.Column('currency', sa.String(3), nullable=False, server_default='usd'),
        sa.Column('unit_amount', sa.Integer, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('stock >= 0', name='ck_inventory_stock_non_negative'),
    )
    op.create_index('ix_inventory_price_id', 'inventory', ['price_id'], unique=True)

def downgrade():
    op.drop_index('ix_inventory_price_id', table_name='inventory')
    op.drop_table('inventory')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_email', table_name='orders')
    op.drop_index('ix_orders_pickup_code', table_name='orders')
    op.drop_table('orders')
