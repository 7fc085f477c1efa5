"""
Orchestration stages: the orchestrator, the subtask queue processor and the
summarizer.
"""
