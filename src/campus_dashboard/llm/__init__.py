from campus_dashboard.llm.responder import OpenAIResponder, Responder, build_responder

__all__ = ["OpenAIResponder", "Responder", "build_responder"]
