import django_filters
from django.db.models import Q

from marketplace.catalog.domain.models.book import Book


class BookFilter(django_filters.FilterSet):
    """
    Filter for book listings
    """

    # Price range filters
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")

    category = django_filters.ChoiceFilter(choices=Book.CATEGORY_CHOICES)
    condition = django_filters.ChoiceFilter(choices=Book.CONDITION_CHOICES)
    grade = django_filters.CharFilter(lookup_expr="exact")

    # Pickup location and campus
    province = django_filters.CharFilter(lookup_expr="iexact")
    university = django_filters.CharFilter(lookup_expr="icontains")

    seller = django_filters.UUIDFilter(field_name="seller_id")

    # Search in title, author and ISBN
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Book
        fields = ["category", "condition", "grade", "province", "university", "seller"]

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(title__icontains=value) | Q(author__icontains=value) | Q(isbn__icontains=value))
