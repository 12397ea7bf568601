"""
templates
---------

Functions 패키지에 들어가는 index.js / package.json 템플릿.
"""

from __future__ import annotations

import json
from typing import Mapping


# Firebase Functions 런타임의 Node 메이저 버전 (package.json engines 와 로컬 점검에 같이 사용)
NODE_VERSION = 20

ENTRY_POINT_FILE = "index.js"
PACKAGE_JSON_FILE = "package.json"


def render_entry_point(server_output_path: str) -> str:
    """
    서버 번들의 express 앱을 HTTPS 트리거 함수(ssr)로 내보내는 index.js 소스.

    index.js 는 dirname(server_output_path) 에 놓이고, 서버 번들은 재배치 후
    그 아래 ./<server_output_path> 에 위치한다.
    """
    require_path = "./" + server_output_path.replace("\\", "/").strip("/") + "/main"
    return (
        "const functions = require('firebase-functions');\n"
        "\n"
        "// Increase readability in Cloud Logging\n"
        "require('firebase-functions/lib/logger/compat');\n"
        "\n"
        f"const expressApp = require('{require_path}').app();\n"
        "\n"
        "exports.ssr = functions.https.onRequest(expressApp);\n"
    )


def render_package_json(dependencies: Mapping[str, str],
                        dev_dependencies: Mapping[str, str]) -> str:
    package = {
        "name": "functions",
        "description": "Angular Universal Application",
        "scripts": {
            "serve": "firebase serve --only functions",
            "shell": "firebase functions:shell",
            "start": "npm run shell",
            "deploy": "firebase deploy --only functions",
            "logs": "firebase functions:log",
        },
        "engines": {"node": str(NODE_VERSION)},
        "main": ENTRY_POINT_FILE,
        "dependencies": dict(dependencies),
        "devDependencies": dict(dev_dependencies),
        "private": True,
    }
    return json.dumps(package, indent=2) + "\n"
