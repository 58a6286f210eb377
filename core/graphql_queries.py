"""
GraphQL Query Definitions — Every query and mutation the extractor sends.

Bulk export queries (one per resource kind):
  Handed to bulkOperationRunQuery as its `query` argument. The store runs them
  asynchronously and writes the result as JSONL: one line per node, with nested
  connection nodes (product variants) emitted as separate lines that carry a
  "__parentId" back-reference. Line order is not guaranteed to put a parent
  before its children.

  The product query selects __typename on both products and variants, which is
  what the Reconciler uses to tell a product line from a variant line.

Job control:
  BULK_RUN_MUTATION   Submits an export query; returns the BulkOperation id or
                      a non-empty userErrors list.
  BULK_STATUS_QUERY   Looks up one BulkOperation by id; `url` is only set once
                      the status is COMPLETED (and stays null for an export
                      that matched zero objects).

Paginated queries (one per resource kind):
  Take $first/$after and return edges plus pageInfo {hasNextPage endCursor}.
  Used by PaginatedFetcher for small stores where an export job is overkill.

Pipeline context:
  query_for() (in core.resources) resolves a ResourceKind to the bulk query
  text; JobSubmitter, JobPoller and PaginatedFetcher import the rest directly.
"""

PRODUCTS_BULK_QUERY = """
{
  products {
    edges {
      node {
        __typename
        id
        title
        createdAt
        variants(first: 100) {
          edges {
            node {
              __typename
              id
              title
              price
            }
          }
        }
      }
    }
  }
}
"""

ORDERS_BULK_QUERY = """
{
  orders {
    edges {
      node {
        __typename
        id
        name
        createdAt
        totalPriceSet {
          shopMoney {
            amount
          }
        }
      }
    }
  }
}
"""

CUSTOMERS_BULK_QUERY = """
{
  customers {
    edges {
      node {
        __typename
        id
        firstName
        lastName
        email
        createdAt
      }
    }
  }
}
"""

BULK_RUN_MUTATION = """
mutation RunBulkExport($query: String!) {
  bulkOperationRunQuery(query: $query) {
    bulkOperation {
      id
      status
      errorCode
    }
    userErrors {
      field
      message
    }
  }
}
"""

BULK_STATUS_QUERY = """
query BulkExportStatus($id: ID!) {
  node(id: $id) {
    ... on BulkOperation {
      id
      status
      url
      errorCode
      objectCount
    }
  }
}
"""

PRODUCTS_PAGE_QUERY = """
query ProductsPage($first: Int!, $after: String) {
  products(first: $first, after: $after) {
    edges {
      cursor
      node {
        __typename
        id
        title
        createdAt
        variants(first: 100) {
          edges {
            node {
              __typename
              id
              title
              price
            }
          }
        }
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

ORDERS_PAGE_QUERY = """
query OrdersPage($first: Int!, $after: String) {
  orders(first: $first, after: $after) {
    edges {
      cursor
      node {
        __typename
        id
        name
        createdAt
        totalPriceSet {
          shopMoney {
            amount
          }
        }
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

CUSTOMERS_PAGE_QUERY = """
query CustomersPage($first: Int!, $after: String) {
  customers(first: $first, after: $after) {
    edges {
      cursor
      node {
        __typename
        id
        firstName
        lastName
        email
        createdAt
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""
