# donorlink/pagination.py
"""
Single paginated envelope for every list endpoint:

    { results, page, limit, totalResults, totalPages }
"""
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardPagination(PageNumberPagination):
    page_size = 10
    page_query_param = 'page'
    page_size_query_param = 'limit'
    max_page_size = 100

    def get_paginated_response(self, data):
        return Response({
            'results': data,
            'page': self.page.number,
            'limit': self.page.paginator.per_page,
            'totalResults': self.page.paginator.count,
            'totalPages': self.page.paginator.num_pages,
        })

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'properties': {
                'results': schema,
                'page': {'type': 'integer'},
                'limit': {'type': 'integer'},
                'totalResults': {'type': 'integer'},
                'totalPages': {'type': 'integer'},
            },
        }
