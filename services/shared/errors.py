"""
Shared — エラー分類 (Error Taxonomy)

全サービス共通の例外階層。サービス層はこれらを送出し、
各サービスの FastAPI 例外ハンドラが HTTP ステータスに変換する。

  ValidationError     400  リモート呼び出し・ストア操作の前に弾かれた不正リクエスト
  NotFound            404  エンティティ単位の操作でストアに存在しない
  StockRejected       409  在庫なしが確定した (注文ワークフロー)
  VerificationFailed  503  在庫確認ができなかった (タイムアウト・通信エラー)
  StoreUnavailable    500  永続化ストアに到達できない
  CacheDegraded       ---  キャッシュ層の障害。内部で吸収され呼び出し元には出ない
"""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError


class MeshError(Exception):
    """リクエスト境界まで伝播するエラーの基底クラス"""

    code = "mesh_error"
    status_code = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        return {"code": self.code, "detail": self.message, **self.details}


class ValidationError(MeshError):
    code = "validation_error"
    status_code = 400


class NotFound(MeshError):
    code = "not_found"
    status_code = 404


class StockRejected(MeshError):
    """在庫不足が確定した。自動リトライはしない。"""

    code = "stock_rejected"
    status_code = 409

    def __init__(self, sku_code: str, quantity: int) -> None:
        super().__init__(
            f"Product with skuCode: {sku_code} is not in stock "
            f"for the requested quantity: {quantity}",
            sku_code=sku_code,
            quantity=quantity,
        )
        self.sku_code = sku_code
        self.quantity = quantity


class VerificationFailed(MeshError):
    """在庫状態が不明。呼び出し元はリトライしてよい。"""

    code = "verification_failed"
    status_code = 503


class StoreUnavailable(MeshError):
    code = "store_unavailable"
    status_code = 500


class CacheDegraded(Exception):
    """キャッシュバックエンドの障害。ProductService が吸収してストアへフォールバックする。"""


class CacheKindMismatch(TypeError):
    """キャッシュエントリの種別と読み出し時に指定した種別が一致しない (呼び出し側のバグ)"""

    def __init__(self, key: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Cache entry {key!r} holds a {actual!r} payload, not {expected!r}"
        )
        self.key = key
        self.expected = expected
        self.actual = actual


class IllegalTransition(RuntimeError):
    """ワークフローの状態遷移表にない遷移が要求された"""


# ストアに到達できないことを示す例外。制約違反 (DataError / IntegrityError) は含めない。
STORE_UNREACHABLE_ERRORS = (OperationalError, InterfaceError, OSError)


async def mesh_error_handler(request: Request, exc: MeshError) -> JSONResponse:
    """MeshError を HTTP レスポンスに変換する (各サービスの app に登録する)"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())
