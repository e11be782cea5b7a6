"""Pipeline stage implementations.

Every module exposes ``async def execute(context, data) -> PipelineData``.
"""
