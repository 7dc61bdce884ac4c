from decimal import Decimal

from django.test import TestCase

from marketplace.cart.domain.services.cart_service import CartService
from marketplace.catalog.domain.services.book_service import BookService
from marketplace.models import Book, CartItem
from marketplace.notifications.domain.services.notification_service import NotificationService
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    BankingDetailsFactory,
    BookFactory,
    CartFactory,
    CartItemFactory,
    NotificationFactory,
    SellerFactory,
    UserFactory,
)


class CartServiceTest(TestCase):
    def setUp(self):
        self.service = CartService()
        self.buyer = UserFactory()
        self.seller_a = SellerFactory()
        self.seller_b = SellerFactory()

    def test_cart_is_grouped_by_seller(self):
        cart = CartFactory(user=self.buyer)
        CartItemFactory(cart=cart, book=BookFactory(seller=self.seller_a, price=Decimal("100.00")))
        CartItemFactory(cart=cart, book=BookFactory(seller=self.seller_a, price=Decimal("50.00")))
        CartItemFactory(cart=cart, book=BookFactory(seller=self.seller_b, price=Decimal("80.00")))

        result = self.service.get_cart(self.buyer)

        self.assertTrue(result.ok)
        self.assertEqual(result.value["item_count"], 3)
        self.assertEqual(result.value["total"], Decimal("230.00"))
        subtotals = {group["seller"].pk: group["subtotal"] for group in result.value["groups"]}
        self.assertEqual(subtotals, {self.seller_a.pk: Decimal("150.00"), self.seller_b.pk: Decimal("80.00")})

    def test_add_to_cart(self):
        book = BookFactory(seller=self.seller_a)

        result = self.service.add_to_cart(self.buyer, book.id)

        self.assertTrue(result.ok)
        self.assertTrue(CartItem.objects.filter(cart__user=self.buyer, book=book).exists())

    def test_cannot_add_same_book_twice(self):
        book = BookFactory(seller=self.seller_a)
        self.service.add_to_cart(self.buyer, book.id)

        result = self.service.add_to_cart(self.buyer, book.id)

        self.assertEqual(result.error, ErrorCodes.ALREADY_IN_CART)

    def test_cannot_add_own_book(self):
        book = BookFactory(seller=self.seller_a)
        result = self.service.add_to_cart(self.seller_a, book.id)
        self.assertEqual(result.error, ErrorCodes.OWN_BOOK)

    def test_cannot_add_sold_book(self):
        book = BookFactory(seller=self.seller_a, status="sold", sold=True)
        result = self.service.add_to_cart(self.buyer, book.id)
        self.assertEqual(result.error, ErrorCodes.BOOK_UNAVAILABLE)

    def test_add_unknown_book(self):
        result = self.service.add_to_cart(self.buyer, "missing")
        self.assertEqual(result.error, ErrorCodes.BOOK_NOT_FOUND)

    def test_remove_and_clear(self):
        first, second = BookFactory(seller=self.seller_a), BookFactory(seller=self.seller_b)
        self.service.add_to_cart(self.buyer, first.id)
        self.service.add_to_cart(self.buyer, second.id)

        self.assertTrue(self.service.remove_from_cart(self.buyer, first.id).ok)
        self.assertEqual(self.service.remove_from_cart(self.buyer, first.id).error, ErrorCodes.ITEM_NOT_IN_CART)
        self.assertEqual(self.service.clear_cart(self.buyer).value, 1)
        self.assertEqual(self.service.get_cart(self.buyer).value["item_count"], 0)

    def test_seller_book_ids(self):
        book = BookFactory(seller=self.seller_a)
        self.service.add_to_cart(self.buyer, book.id)
        self.service.add_to_cart(self.buyer, BookFactory(seller=self.seller_b).id)

        self.assertEqual(self.service.seller_book_ids(self.buyer, self.seller_a.pk), [book.id])


class BookServiceTest(TestCase):
    def setUp(self):
        self.service = BookService()
        self.seller = SellerFactory()

    def test_create_book_requires_banking(self):
        result = self.service.create_book({"title": "Calculus", "author": "Stewart", "price": "350.00"}, self.seller)
        self.assertEqual(result.error, ErrorCodes.BANKING_SETUP_REQUIRED)

    def test_create_book_with_active_banking(self):
        BankingDetailsFactory(seller=self.seller)

        result = self.service.create_book(
            {"title": "Calculus", "author": "Stewart", "price": Decimal("350.00"), "condition": "good"}, self.seller
        )

        self.assertTrue(result.ok, result.error_detail)
        self.assertEqual(result.value.status, "available")
        self.assertEqual(result.value.province, "Western Cape")

    def test_create_book_missing_fields(self):
        BankingDetailsFactory(seller=self.seller)
        result = self.service.create_book({"title": "Calculus"}, self.seller)
        self.assertEqual(result.error, ErrorCodes.INVALID_BOOK_DATA)
        self.assertIn("author", result.error_detail)

    def test_list_books_filters(self):
        BookFactory(title="Organic Chemistry", province="Gauteng", price=Decimal("300.00"), category="university")
        BookFactory(title="Grade 10 Maths", province="Limpopo", price=Decimal("120.00"), category="school")
        BookFactory(title="Hidden", status="sold", sold=True)

        everything = self.service.list_books().value
        search = self.service.list_books({"search": "chemistry"}).value
        cheap = self.service.list_books({"max_price": Decimal("200.00")}).value
        school = self.service.list_books({"category": "school", "province": "limpopo"}).value

        self.assertEqual(everything["count"], 2)
        self.assertEqual([b.title for b in search["results"]], ["Organic Chemistry"])
        self.assertEqual([b.title for b in cheap["results"]], ["Grade 10 Maths"])
        self.assertEqual(school["count"], 1)

    def test_list_books_ignores_invalid_filters(self):
        BookFactory()

        result = self.service.list_books({"seller": "not-a-uuid", "condition": "mint"})

        self.assertTrue(result.ok)
        self.assertEqual(result.value["count"], 1)

    def test_list_books_ordering(self):
        BookFactory(price=Decimal("300.00"))
        BookFactory(price=Decimal("100.00"))

        results = self.service.list_books(ordering="price").value["results"]
        self.assertEqual([b.price for b in results], [Decimal("100.00"), Decimal("300.00")])

    def test_update_and_delist_own_book(self):
        book = BookFactory(seller=self.seller)
        CartItemFactory(book=book)

        updated = self.service.update_book(book.id, {"price": Decimal("99.00")}, self.seller)
        delisted = self.service.delist_book(book.id, self.seller)

        self.assertTrue(updated.ok)
        self.assertTrue(delisted.ok)
        book.refresh_from_db()
        self.assertEqual(book.price, Decimal("99.00"))
        self.assertEqual(book.status, "unavailable")
        self.assertFalse(CartItem.objects.filter(book=book).exists())

    def test_cannot_edit_other_sellers_book(self):
        book = BookFactory()
        result = self.service.update_book(book.id, {"price": Decimal("1.00")}, self.seller)
        self.assertEqual(result.error, ErrorCodes.NOT_BOOK_OWNER)

    def test_cannot_delist_reserved_book(self):
        book = BookFactory(seller=self.seller, status="reserved")
        result = self.service.delist_book(book.id, self.seller)
        self.assertEqual(result.error, ErrorCodes.BOOK_UNAVAILABLE)
        self.assertEqual(Book.objects.get(id=book.id).status, "reserved")


class NotificationServiceTest(TestCase):
    def setUp(self):
        self.service = NotificationService()
        self.user = UserFactory()

    def test_notify_creates_notification(self):
        notification = self.service.notify(self.user, "system", "Hello", "Welcome to ReBooked", priority="low")

        self.assertIsNotNone(notification)
        self.assertEqual(notification.priority, "low")
        self.assertEqual(self.service.unread_count(self.user).value, 1)

    def test_list_and_mark_read(self):
        first = NotificationFactory(user=self.user)
        NotificationFactory(user=self.user)
        NotificationFactory()

        listing = self.service.list_notifications(self.user).value
        self.assertEqual(listing["count"], 2)
        self.assertEqual(listing["unread_count"], 2)

        self.assertTrue(self.service.mark_read(self.user, first.id).value.read)
        self.assertEqual(self.service.list_notifications(self.user, unread_only=True).value["count"], 1)
        self.assertEqual(self.service.mark_all_read(self.user).value, 1)
        self.assertEqual(self.service.unread_count(self.user).value, 0)

    def test_cannot_read_someone_elses_notification(self):
        other = NotificationFactory()
        result = self.service.mark_read(self.user, other.id)
        self.assertEqual(result.error, ErrorCodes.NOTIFICATION_NOT_FOUND)
