"""Pytest configuration for medportal tests."""
import json
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add project root to path so 'medportal' can be imported without installing
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def make_response(status_code=200, json_data=None, text=None):
    """Build a mocked requests.Response."""
    response = Mock()
    response.status_code = status_code
    if json_data is None and text is None:
        response.json.side_effect = ValueError("No JSON")
        response.text = ""
    elif json_data is None:
        response.json.side_effect = ValueError("No JSON")
        response.text = text
    else:
        response.json.return_value = json_data
        response.text = text if text is not None else json.dumps(json_data)
    return response


@pytest.fixture
def response_factory():
    return make_response
