"""
Pydantic request/response schemas, one module per resource.

Schemas are separate from the ORM models: API contracts change
independently of the table layout, and only listed fields are exposed.
"""
