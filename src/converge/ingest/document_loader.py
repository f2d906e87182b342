"""Load desired-state documents from YAML or JSON files."""

from pathlib import Path
from typing import Dict, Any
import yaml
from ..utils.errors import DocumentLoadError
from ..utils.logging import get_logger

logger = get_logger("ingest.document_loader")


def load_document(document_path: str) -> Dict[str, Any]:
    """
    Load a desired-state document.
    
    JSON documents are read by the YAML parser as well.
    
    Args:
        document_path: Path to the document
        
    Returns:
        Raw document mapping with 'resources' and 'outputs' present
        
    Raises:
        DocumentLoadError: If the file cannot be read or has the wrong shape
    """
    path = Path(document_path)
    
    if not path.exists():
        raise DocumentLoadError(
            f"Document not found: {document_path}. "
            "Please check the file path and ensure the file exists."
        )
    
    if not path.is_file():
        raise DocumentLoadError(f"Path is not a file: {document_path}.")
    
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DocumentLoadError(f"Invalid YAML in document: {e}")
    except OSError as e:
        raise DocumentLoadError(
            f"Error reading document: {e}. "
            "Please check file permissions and try again."
        )
    
    if data is None:
        logger.warning(f"Document {document_path} is empty")
        data = {}
    
    validate_document_structure(data)
    
    data.setdefault("resources", [])
    data.setdefault("outputs", {})
    
    logger.info(f"Loaded document from {document_path} (resources: {len(data['resources'])})")
    return data


def validate_document_structure(data: Any) -> None:
    """
    Check the top-level shape of a raw document.
    
    Raises:
        DocumentLoadError: If the structure is invalid
    """
    if not isinstance(data, dict):
        raise DocumentLoadError("Document must contain a mapping at the top level")
    
    unknown_keys = set(data) - {"resources", "outputs"}
    if unknown_keys:
        raise DocumentLoadError(f"Unknown top-level keys: {', '.join(sorted(unknown_keys))}")
    
    resources = data.get("resources", [])
    if resources is not None and not isinstance(resources, list):
        raise DocumentLoadError("'resources' must be a list of declarations")
    
    for idx, declaration in enumerate(resources or []):
        if not isinstance(declaration, dict):
            raise DocumentLoadError(f"Resource at index {idx} must be a mapping")
        missing = [key for key in ("type", "name") if key not in declaration]
        if missing:
            raise DocumentLoadError(f"Resource at index {idx} missing: {', '.join(missing)}")
    
    outputs = data.get("outputs", {})
    if outputs is not None and not isinstance(outputs, dict):
        raise DocumentLoadError("'outputs' must be a mapping of name to value")
