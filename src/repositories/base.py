"""Base repository for Firestore data access over the REST client.

모든 Repository가 상속하는 기본 클래스.
"""

from typing import Any, ClassVar, Generic, TypeVar

from pydantic import AnyUrl, BaseModel

from src.adapters.errors import OperationFailedError
from src.adapters.firebase_rest_client import FirebaseRestClient
from src.adapters.firestore_urls import validate_document_id

# Pydantic 모델 타입 변수
T = TypeVar("T", bound=BaseModel)


class BaseRepository(Generic[T]):
    """Firestore Repository 기본 클래스.

    각 도메인 Repository는 이 클래스를 상속하고
    collection_name과 model_class를 정의해야 합니다.
    모델의 ``id`` 필드는 문서 ID로 사용되며 필드로 저장되지 않습니다.

    Example:
        class BookRepository(BaseRepository[Book]):
            collection_name = "books"
            model_class = Book
    """

    collection_name: ClassVar[str]
    model_class: ClassVar[type[BaseModel]]

    def __init__(self, client: FirebaseRestClient) -> None:
        """Initialize repository with a Firebase REST client.

        Args:
            client: Firebase REST 클라이언트 인스턴스.
        """
        self._client = client

    def _document_path(self, doc_id: str) -> str:
        """컬렉션 바로 아래 문서 경로 (doc_id는 단일 세그먼트만 허용)."""
        return f"{self.collection_name}/{validate_document_id(doc_id)}"

    async def get_by_id(self, doc_id: str) -> T | None:
        """ID로 문서 조회.

        Args:
            doc_id: 문서 ID.

        Returns:
            모델 인스턴스 또는 None (404).
        """
        try:
            data = await self._client.get_document(self._document_path(doc_id))
        except OperationFailedError as e:
            if e.status_code == 404:
                return None
            raise
        return self.model_class(**data)  # type: ignore[return-value]

    async def create(self, model: T) -> T:
        """문서 생성.

        Args:
            model: 저장할 모델 인스턴스.

        Returns:
            Firestore가 반환한 문서로 만든 모델.
        """
        data = await self._client.create_document(
            self.collection_name,
            self._model_to_dict(model),
            document_id=model.id,  # type: ignore[attr-defined]
        )
        return self.model_class(**data)  # type: ignore[return-value]

    async def update(self, model: T) -> T:
        """문서 업데이트 (전체 교체).

        Args:
            model: 업데이트할 모델 인스턴스.

        Returns:
            업데이트된 모델.
        """
        data = await self._client.update_document(
            self._document_path(model.id),  # type: ignore[attr-defined]
            self._model_to_dict(model),
        )
        return self.model_class(**data)  # type: ignore[return-value]

    async def delete(self, doc_id: str) -> None:
        """문서 삭제.

        Args:
            doc_id: 삭제할 문서 ID.
        """
        await self._client.delete_document(self._document_path(doc_id))

    async def find_all(self) -> list[T]:
        """전체 문서 조회.

        Returns:
            모든 모델 인스턴스 리스트.
        """
        documents = await self._client.get_collection(self.collection_name)
        return [self.model_class(**data) for data in documents]  # type: ignore[misc]

    async def exists(self, doc_id: str) -> bool:
        """문서 존재 여부 확인.

        Args:
            doc_id: 확인할 문서 ID.

        Returns:
            존재하면 True.
        """
        return await self.get_by_id(doc_id) is not None

    def _model_to_dict(self, model: T) -> dict[str, Any]:
        """모델을 Firestore 저장용 dict로 변환.

        Args:
            model: 변환할 모델.

        Returns:
            인코딩 전 필드 dict (id 제외).
        """
        # mode='python' keeps datetime objects so they encode as timestamps
        data = model.model_dump(mode="python", exclude={"id"})
        return self._serialize_for_firestore(data)

    def _serialize_for_firestore(self, data: Any) -> Any:
        """Firestore에 저장 가능한 형태로 직렬화.

        URL 타입처럼 코덱이 직접 지원하지 않는 타입을 변환합니다.

        Args:
            data: 변환할 데이터.

        Returns:
            인코딩 가능한 데이터.
        """
        if isinstance(data, AnyUrl):
            return str(data)
        elif isinstance(data, dict):
            return {k: self._serialize_for_firestore(v) for k, v in data.items()}
        elif isinstance(data, (list, tuple, set, frozenset)):
            return [self._serialize_for_firestore(item) for item in data]
        return data
