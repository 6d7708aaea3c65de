import pytest
from unittest.mock import MagicMock, patch

from exceptions import InvalidResponse, NetworkFailure
from models.dtos import Product, RawProductRecord
from repositories.open_beauty_facts_client import OpenBeautyFactsClient
from repositories.product_repository import ProductRepository, RANDOM_SEARCH_TERMS
from repositories.product_store import ProductStore
from services.product_normalization_service import ProductNormalizationService

# -------------------------------------------------------------------
# 가짜(Fake) 저장소
# -------------------------------------------------------------------

class InMemoryProductStore(ProductStore):
    """파일/DB 대신 리스트에 저장하는 테스트용 저장소"""

    def __init__(self, products=None):
        self.products = list(products or [])
        self.save_calls = 0

    def load_all(self):
        return list(self.products)

    def save_all(self, products):
        self.save_calls += 1
        self.products = list(products)

    def delete_all(self):
        self.products = []


class BrokenProductStore(ProductStore):
    def load_all(self):
        raise OSError("disk unavailable")

    def save_all(self, products):
        raise OSError("disk unavailable")

    def delete_all(self):
        raise OSError("disk unavailable")


def raw(code, **fields) -> RawProductRecord:
    return RawProductRecord.model_validate({"code": code, **fields})


def cached_product(barcode, name) -> Product:
    return Product(barcode=barcode, name=name, brand="Old", category="Personal Care")


# -------------------------------------------------------------------
# 픽스처
# -------------------------------------------------------------------

@pytest.fixture
def mock_client() -> MagicMock:
    return MagicMock(spec=OpenBeautyFactsClient)


@pytest.fixture
def store() -> InMemoryProductStore:
    return InMemoryProductStore()


@pytest.fixture
def repo(mock_client, store) -> ProductRepository:
    return ProductRepository(
        client=mock_client,
        normalizer=ProductNormalizationService(),
        store=store,
    )


# -------------------------------------------------------------------
# search
# -------------------------------------------------------------------

def test_search_empty_result(repo, mock_client, store):
    mock_client.search.return_value = []

    assert repo.search("", 1, 20) == []
    assert store.save_calls == 0


def test_search_normalizes_and_caches(repo, mock_client, store):
    mock_client.search.return_value = [
        raw("111", product_name="Foaming Cleanser", categories_tags=["en:cleansers"]),
        raw("222", brands="La Roche-Posay"),
    ]

    products = repo.search("cleanser", page=1, page_size=20)

    mock_client.search.assert_called_once_with("cleanser", page=1, page_size=20)
    assert [p.barcode for p in products] == ["111", "222"]
    assert products[0].category == "Cleanser"
    assert [p.barcode for p in store.products] == ["111", "222"]


def test_search_merge_keeps_existing_barcodes(repo, mock_client, store):
    """검색 결과는 이미 캐시에 있는 바코드를 덮어쓰지 않음"""
    store.products = [cached_product("111", "Cached Name")]
    mock_client.search.return_value = [
        raw("111", product_name="Fresh Name"),
        raw("333", product_name="New Product"),
    ]

    products = repo.search("serum")

    # 반환값은 이번 검색 결과 그대로
    assert [p.name for p in products] == ["Fresh Name", "New Product"]
    # 캐시는 먼저 들어온 값 유지
    assert [(p.barcode, p.name) for p in store.products] == [
        ("111", "Cached Name"),
        ("333", "New Product"),
    ]


def test_search_merge_first_duplicate_in_batch_wins(repo, mock_client, store):
    mock_client.search.return_value = [
        raw("555", product_name="First"),
        raw("555", product_name="Second"),
    ]

    products = repo.search("toner")

    assert len(products) == 2
    assert [p.name for p in store.products] == ["First"]


def test_search_drops_records_that_fail_normalization(repo, mock_client, store):
    mock_client.search.return_value = [
        raw("111", product_name="Good"),
        # 범위를 벗어난 타임스탬프 -> 정규화 실패
        raw("999", created_t=10 ** 20),
    ]

    products = repo.search("cream")

    assert [p.barcode for p in products] == ["111"]


def test_search_returns_results_when_cache_write_fails(mock_client):
    repo = ProductRepository(
        client=mock_client,
        normalizer=ProductNormalizationService(),
        store=BrokenProductStore(),
    )
    mock_client.search.return_value = [raw("111", product_name="Still Returned")]

    products = repo.search("mask")

    assert [p.name for p in products] == ["Still Returned"]


@pytest.mark.parametrize("error", [NetworkFailure(ConnectionError("reset")), InvalidResponse("bad", 500)])
def test_search_propagates_client_errors(repo, mock_client, store, error):
    mock_client.search.side_effect = error

    with pytest.raises(type(error)):
        repo.search("shampoo")
    assert store.save_calls == 0


# -------------------------------------------------------------------
# fetch_by_code
# -------------------------------------------------------------------

def test_fetch_by_code_hit(repo, mock_client, store):
    mock_client.fetch_by_code.return_value = raw("3017620422003", brands="Nutella")

    product = repo.fetch_by_code("3017620422003")

    assert product.barcode == "3017620422003"
    assert product.brand == "Nutella"
    assert product.category == "Personal Care"
    assert product.rating is None
    assert store.products == [product]


def test_fetch_by_code_overwrites_cached_barcode(repo, mock_client, store):
    """바코드 조회는 검색과 달리 같은 바코드를 덮어씀"""
    store.products = [cached_product("111", "Old Name"), cached_product("222", "Other")]
    mock_client.fetch_by_code.return_value = raw("111", product_name="New Name")

    repo.fetch_by_code("111")

    assert [(p.barcode, p.name) for p in store.products] == [("111", "New Name"), ("222", "Other")]


def test_fetch_by_code_miss(repo, mock_client, store):
    mock_client.fetch_by_code.return_value = None

    assert repo.fetch_by_code("0000000000000") is None
    assert store.save_calls == 0


def test_fetch_by_code_returns_product_when_cache_write_fails(mock_client):
    repo = ProductRepository(
        client=mock_client,
        normalizer=ProductNormalizationService(),
        store=BrokenProductStore(),
    )
    mock_client.fetch_by_code.return_value = raw("777", product_name="Sunscreen SPF 50")

    assert repo.fetch_by_code("777").name == "Sunscreen SPF 50"


def test_fetch_by_code_propagates_network_failure(repo, mock_client):
    mock_client.fetch_by_code.side_effect = NetworkFailure(TimeoutError("timeout"))

    with pytest.raises(NetworkFailure):
        repo.fetch_by_code("123")


def test_fetch_by_code_unnormalizable_record_is_invalid_response(repo, mock_client, store):
    """검색과 달리 단건 조회는 정규화 실패를 조용히 버리지 않음"""
    mock_client.fetch_by_code.return_value = raw("999", created_t=10 ** 20)

    with pytest.raises(InvalidResponse) as exc_info:
        repo.fetch_by_code("999")

    assert exc_info.value.__cause__ is not None
    assert store.save_calls == 0


# -------------------------------------------------------------------
# fetch_random
# -------------------------------------------------------------------

def test_fetch_random_delegates_to_search(repo, mock_client):
    mock_client.search.return_value = []

    with patch("repositories.product_repository.random.choice", return_value="mascara") as mock_choice:
        repo.fetch_random(7)

    mock_choice.assert_called_once_with(RANDOM_SEARCH_TERMS)
    mock_client.search.assert_called_once_with("mascara", page=1, page_size=7)


def test_random_vocabulary():
    assert len(RANDOM_SEARCH_TERMS) == 10
    assert "sunscreen" in RANDOM_SEARCH_TERMS


# -------------------------------------------------------------------
# 로컬 캐시 조회
# -------------------------------------------------------------------

def test_cached_products_filter(repo, store, mock_client):
    store.products = [
        Product(barcode="1", name="Hydrating Toner", brand="Klairs", category="Toner"),
        Product(barcode="2", name="Daily Lotion", brand="CeraVe", category="Moisturizer"),
        Product(barcode="3", name="Clay Mask", brand="Innisfree", category="Mask"),
    ]

    assert len(repo.cached_products()) == 3
    assert [p.barcode for p in repo.cached_products("cerave")] == ["2"]
    assert [p.barcode for p in repo.cached_products("MASK")] == ["3"]
    assert [p.barcode for p in repo.cached_products("moistur")] == ["2"]
    mock_client.search.assert_not_called()


def test_find_cached(repo, store, mock_client):
    store.products = [cached_product("111", "Cached")]

    assert repo.find_cached("111").name == "Cached"
    assert repo.find_cached("222") is None
    mock_client.fetch_by_code.assert_not_called()


def test_clear_cache(repo, store):
    store.products = [cached_product("111", "Cached")]

    repo.clear_cache()

    assert store.products == []
