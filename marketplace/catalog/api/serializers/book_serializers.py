from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import serializers

from marketplace.catalog.domain.models.book import Book


User = get_user_model()


class BookSellerSerializer(serializers.ModelSerializer):
    """Public seller summary shown on listings"""

    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "display_name", "province", "university"]


class BookListSerializer(serializers.ModelSerializer):
    """Minimal book serializer for list/search cards"""

    seller = BookSellerSerializer(read_only=True)

    class Meta:
        model = Book
        fields = [
            "id",
            "title",
            "author",
            "price",
            "condition",
            "category",
            "grade",
            "university",
            "province",
            "image_url",
            "status",
            "seller",
            "created_at",
        ]


class BookDetailSerializer(BookListSerializer):
    class Meta(BookListSerializer.Meta):
        fields = BookListSerializer.Meta.fields + [
            "isbn",
            "description",
            "university_year",
            "weight_kg",
            "sold",
            "updated_at",
        ]


class BookWriteSerializer(serializers.ModelSerializer):
    """Validates listing input; the service performs the write"""

    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("1.00"), max_value=Decimal("100000")
    )
    weight_kg = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=Decimal("0.1"), required=False)
    pickup_address = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)
    status = serializers.ChoiceField(choices=["available", "unavailable"], required=False)

    class Meta:
        model = Book
        fields = [
            "title",
            "author",
            "isbn",
            "description",
            "category",
            "grade",
            "university",
            "university_year",
            "condition",
            "price",
            "image_url",
            "province",
            "pickup_address",
            "weight_kg",
            "status",
        ]


class SellerBookSerializer(BookDetailSerializer):
    """Seller's own listing, including the pickup address"""

    class Meta(BookDetailSerializer.Meta):
        fields = BookDetailSerializer.Meta.fields + ["pickup_address"]
