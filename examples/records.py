"""
Orders and customers example.

Runs against DynamoDB Local: docker run -p 8000:8000 amazon/dynamodb-local
"""

from dynamap import (
    HASH,
    RANGE,
    AccessConfig,
    Attr,
    Attribute,
    DynamoAccess,
    Many,
    Model,
    NotFoundError,
    RequestParams,
    gsi,
    read_dump,
    write_dump,
)


class Customer(Model):
    name: str = Attribute("name", default="")
    email: str = Attribute("email", gsi("email-index", HASH), default="")


class Order(Model):
    customer_id: str = Attribute("customerId", gsi("customer-index", HASH), default="")
    placed_at: int = Attribute("placedAt", gsi("customer-index", RANGE), default=0)
    lines: list[str] = Attribute("lines", default_factory=list)
    total: float = Attribute("total", default=0.0)


access = DynamoAccess(
    config=AccessConfig(
        table_prefix="example_", region="us-east-1", endpoint_url="http://localhost:8000"
    )
)

for error in access.create_tables(Customer, Order, wait=True):
    print(f"create_tables: {error}")

# Create a customer; id, created and updated are filled in
alice = access.create(Customer(name="Alice", email="alice@example.com"))
print(f"Created customer {alice.id} at {alice.created}")

for placed_at, total in [(1700000300, 12.5), (1700000100, 99.0), (1700000200, 5.25)]:
    access.create(Order(customer_id=alice.id, placed_at=placed_at, total=total))

# Oldest order first, through the customer index
orders = Many(Order)
access.query_by_attribute(orders, "customerId", alice.id)
print("Orders (ascending):", [o.placed_at for o in orders])

# Filtered scan
big_orders = Many(Order)
access.scan(big_orders, RequestParams(filter=Attr("total") > 10))
print("Orders over 10:", len(big_orders))

# Soft delete: the record stays in the table but reads by key no longer see it
access.soft_delete(Customer(), "id", alice.id)
try:
    access.get_item(Customer(), "id", alice.id)
except NotFoundError as e:
    print(f"Soft-deleted: {e}")

# Back up the orders table and read it back
write_dump("orders.json", access.dump_table(Order))
restored = Many(Order)
access.bind(restored, read_dump("orders.json"))
print("Restored", len(restored), "orders")

access.drop_tables(Customer, Order)
