from .assistant import NoteAssistant

__all__ = ["NoteAssistant"]
