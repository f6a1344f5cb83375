"""Document generation for Docchain.

Prompt resolution, structured-output schemas, evaluation rubrics and the
sequential orchestrator that walks a project's document chain.
"""
