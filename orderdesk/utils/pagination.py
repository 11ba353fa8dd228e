from flask import request


def paginate(query, schema):
    """Page through ``query`` and dump the page with ``schema``."""
    page = request.args.get("page", 1, type=int)
    page_size = request.args.get("pageSize", 20, type=int)

    pagination = query.paginate(page=page, per_page=page_size, error_out=False)

    return {
        "data": schema.dump(pagination.items, many=True),
        "total": pagination.total,
        "page": page,
        "pages": pagination.pages,
    }
