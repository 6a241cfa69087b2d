"""
Pipeline modules for the retrieval-augmented assistant.

Query understanding   intent.py, query_rewrite.py, database_filter.py
Retrieval             reranker.py, deep_search.py
Answer synthesis      response_generator.py
Ingestion             chunk_enricher.py
Shared                model_selector.py

Orchestrated by: orchestrator.py
"""
