import pytest

from product_app.models import ProductAnswer, ProductQuestion, Review

pytestmark = pytest.mark.django_db

QUESTION = "Does this phone support dual SIM?"
ANSWER = "Yes, it takes two nano SIM cards."


@pytest.fixture
def question(product_factory, user_factory):
    product = product_factory()
    return ProductQuestion.objects.create(product=product, user=user_factory(), question=QUESTION)


class TestQuestions:
    def test_customer_asks(self, product_factory, user_factory, auth_client):
        product = product_factory()
        res = auth_client(user_factory()).post(
            "/api/questions/", {"product": str(product.pk), "question": QUESTION}, format="json"
        )
        assert res.status_code == 201
        assert ProductQuestion.objects.filter(product=product).count() == 1

    def test_short_question_is_400(self, product_factory, user_factory, auth_client):
        product = product_factory()
        res = auth_client(user_factory()).post(
            "/api/questions/", {"product": str(product.pk), "question": "Why?"}, format="json"
        )
        assert res.status_code == 400
        assert res.data["success"] is False
        assert res.data["error"][0]["path"] == ["question"]

    def test_only_author_or_admin_deletes(self, question, user_factory, admin_user, auth_client):
        stranger = user_factory()
        assert auth_client(stranger).delete(f"/api/questions/{question.pk}/").status_code == 403
        assert auth_client(admin_user).delete(f"/api/questions/{question.pk}/").status_code == 204


class TestAnswers:
    def test_vendor_answers_once(self, question, vendor_factory, auth_client):
        vendor = vendor_factory()
        client = auth_client(vendor.user)
        body = {"question": str(question.pk), "answer": ANSWER}

        first = client.post("/api/answers/", body, format="json")
        second = client.post("/api/answers/", body, format="json")

        assert first.status_code == 201
        assert first.data["vendor"] == str(vendor.pk)
        assert second.status_code == 409
        assert ProductAnswer.objects.count() == 1

    def test_customer_cannot_answer(self, question, user_factory, auth_client):
        res = auth_client(user_factory()).post(
            "/api/answers/", {"question": str(question.pk), "answer": ANSWER}, format="json"
        )
        assert res.status_code == 403

    def test_other_vendor_cannot_edit_answer(self, question, vendor_factory, auth_client):
        owner = vendor_factory()
        answer = ProductAnswer.objects.create(question=question, vendor=owner, answer=ANSWER)
        intruder = vendor_factory()

        res = auth_client(intruder.user).patch(
            f"/api/answers/{answer.pk}/", {"answer": "Something else entirely."}, format="json"
        )

        assert res.status_code == 403

    def test_qa_listing_includes_answers(self, question, vendor_factory, api_client):
        ProductAnswer.objects.create(question=question, vendor=vendor_factory(), answer=ANSWER)

        res = api_client.get(f"/api/products/{question.product_id}/qa/")

        assert res.status_code == 200
        assert res.data["data"][0]["answers"][0]["answer"] == ANSWER


class TestReviews:
    def test_one_review_per_user(self, product_factory, user_factory, auth_client):
        product = product_factory()
        client = auth_client(user_factory())
        url = f"/api/products/{product.pk}/reviews/"

        assert client.post(url, {"rating": 4, "comment": "Solid"}, format="json").status_code == 201
        assert client.post(url, {"rating": 5}, format="json").status_code == 409
        assert Review.objects.filter(product=product).count() == 1

    def test_rating_out_of_range(self, product_factory, user_factory, auth_client):
        product = product_factory()
        res = auth_client(user_factory()).post(
            f"/api/products/{product.pk}/reviews/", {"rating": 6}, format="json"
        )
        assert res.status_code == 400

    def test_reviews_are_scoped_to_product(self, product_factory, user_factory, api_client):
        product = product_factory()
        other = product_factory()
        Review.objects.create(product=product, user=user_factory(), rating=5)
        Review.objects.create(product=other, user=user_factory(), rating=1)

        res = api_client.get(f"/api/products/{product.pk}/reviews/")

        assert res.data["meta"]["total"] == 1
        assert res.data["data"][0]["rating"] == 5
