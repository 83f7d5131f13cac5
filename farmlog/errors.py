# farmlog/errors.py
"""
Error taxonomy for the work-log flows.

Every error carries the message shown to the user and the HTTP status the
routers answer with. Underlying exception detail stays in the logs.
"""
from typing import List

LOAD_FAILED_MESSAGE = "データの取得中にエラーが発生しました。"
NOT_FOUND_MESSAGE = "指定された作業日誌データが見つかりません。"
MISSING_OWNER_MESSAGE = "ユーザー認証が確認できません。"
PERSISTENCE_PREFIX = "作業日誌の保存中にエラーが発生しました: "


class DocumentNotFound(Exception):
    """Raised by the repository when an id does not resolve in a collection."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class WorkLogError(Exception):
    status_code = 500
    default_message = ""

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class LoadError(WorkLogError):
    status_code = 503
    default_message = LOAD_FAILED_MESSAGE


class WorkLogNotFound(WorkLogError):
    status_code = 404
    default_message = NOT_FOUND_MESSAGE


class MissingOwnerError(WorkLogError):
    status_code = 401
    default_message = MISSING_OWNER_MESSAGE


class ValidationFailed(WorkLogError):
    status_code = 422

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        super().__init__(", ".join(self.violations))


class PersistenceError(WorkLogError):
    status_code = 500

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(PERSISTENCE_PREFIX + detail)
