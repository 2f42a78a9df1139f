from alembic import op

revision = '0002_unique_stripe_session'
down_revision = '0001_init'
branch_labels = None
depends_on = None

def upgrade():
    # Webhook redelivery must map back to the existing order
    op.create_unique_constraint('uq_orders_stripe_session_id', 'orders', ['stripe_session_id'])

def downgrade():
    op.drop_constraint('uq_orders_stripe_session_id', 'orders', type_='unique')
