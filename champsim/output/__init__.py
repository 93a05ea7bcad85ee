from .writer import ResultWriter, WriteResult, next_version_path

__all__ = ["ResultWriter", "WriteResult", "next_version_path"]
