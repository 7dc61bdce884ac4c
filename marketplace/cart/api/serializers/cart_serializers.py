from rest_framework import serializers

from marketplace.cart.domain.models import CartItem
from marketplace.catalog.api.serializers.book_serializers import BookListSerializer, BookSellerSerializer


class CartItemSerializer(serializers.ModelSerializer):
    book = BookListSerializer(read_only=True)

    class Meta:
        model = CartItem
        fields = ["id", "book", "added_at"]


class CartGroupSerializer(serializers.Serializer):
    """Cart items from one seller; each group checks out as one order"""

    seller = BookSellerSerializer()
    items = CartItemSerializer(many=True)
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2)


class CartSerializer(serializers.Serializer):
    groups = CartGroupSerializer(many=True)
    item_count = serializers.IntegerField()
    total = serializers.DecimalField(max_digits=10, decimal_places=2)


class AddToCartRequestSerializer(serializers.Serializer):
    """Request body for adding a book to the cart"""

    book_id = serializers.UUIDField(help_text="Book UUID to add")
