# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures: a small online shop modelled with every entity kind."""

import pytest

from cnamodel.model.entities import (
    BackingData,
    Component,
    DataAggregate,
    DataUsage,
    DeploymentMapping,
    Endpoint,
    ExternalEndpoint,
    Infrastructure,
    Link,
    MetaData,
    RequestTrace,
    System,
)
from cnamodel.model.types import ComponentKind


@pytest.fixture
def shop_system() -> System:
    """A System using every entity kind, component variant, and reference type."""
    system = System(name="Online Shop")

    order = DataAggregate(name="Order", metadata=MetaData(label="Order", x=10.0, y=20.0, width=80.0, height=40.0))
    customer = DataAggregate(name="Customer")
    credentials = BackingData(name="DB Credentials", included_data=[("user", "shop"), ("password", "secret")])
    for entity in (order, customer, credentials):
        system.add_entity(entity)

    cluster = Infrastructure(name="K8s Cluster", properties={"environment": "kubernetes"})
    dbms = Infrastructure(
        name="Postgres DBMS",
        backing_data=[DataUsage(entity_id=credentials.id, usage_relation="read")],
    )
    system.add_entity(cluster)
    system.add_entity(dbms)

    orders_api = Endpoint(name="Orders API", properties={"port": 8080})
    public_shop = ExternalEndpoint(name="Public Shop", properties={"url": "https://shop.example"})
    order_service = Component(
        name="Order Service",
        kind=ComponentKind.SERVICE,
        properties={"replicas": 3},
        endpoints=[orders_api],
        external_endpoints=[public_shop],
        data_usages=[
            DataUsage(entity_id=order.id, usage_relation="create"),
            DataUsage(entity_id=credentials.id),
        ],
    )
    sql = Endpoint(name="SQL")
    order_db = Component(
        name="Order DB",
        kind=ComponentKind.STORAGE_BACKING_SERVICE,
        endpoints=[sql],
        data_usages=[DataUsage(entity_id=order.id, usage_relation="persist")],
    )
    queue = Component(name="Message Queue", kind=ComponentKind.BACKING_SERVICE)
    web_ui = ExternalEndpoint(name="Web UI")
    frontend = Component(name="Frontend", external_endpoints=[web_ui])
    for component in (order_service, order_db, queue, frontend):
        system.add_entity(component)

    system.add_entity(DeploymentMapping(deployed_entity_id=dbms.id, underlying_infrastructure_id=cluster.id))
    system.add_entity(DeploymentMapping(deployed_entity_id=order_service.id, underlying_infrastructure_id=cluster.id))
    system.add_entity(
        DeploymentMapping(
            deployed_entity_id=order_db.id,
            underlying_infrastructure_id=dbms.id,
            properties={"replicas": 2},
        )
    )

    to_sql = Link(source_entity_id=order_service.id, target_endpoint_id=sql.id, properties={"protocol": "postgres"})
    to_orders = Link(source_entity_id=frontend.id, target_endpoint_id=orders_api.id)
    system.add_entity(to_sql)
    system.add_entity(to_orders)

    system.add_entity(
        RequestTrace(
            name="Place Order",
            external_endpoint_id=web_ui.id,
            link_ids=[to_orders.id, to_sql.id],
            properties={"sla_ms": 200},
        )
    )
    return system
