"""
Services layer - business logic goes here, NOT in routes.

- status_workflow / confidence_engine / map_service: pure engines, no I/O
- report_store / user_store / memory_store: the document store boundary
- report_service / vote_service / operator_service / user_service: use cases
  that read through a store, call the engines and write back
"""
