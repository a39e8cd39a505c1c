# bogo/product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


PRODUCTS = {
    1: {"id": 1, "name": "Keyboard", "price": 199.99, "type": "simple", "parent_id": None, "in_stock": True},
    2: {"id": 2, "name": "Mouse", "price": 49.50, "type": "simple", "parent_id": None, "in_stock": True},
    3: {"id": 3, "name": "Monitor", "price": 899.00, "type": "simple", "parent_id": None, "in_stock": False},
    # variable product with two variants
    10: {"id": 10, "name": "T-Shirt", "price": 25.00, "type": "variable", "parent_id": None, "in_stock": True},
    11: {"id": 11, "name": "T-Shirt - Red", "price": 25.00, "type": "variation", "parent_id": 10, "in_stock": True},
    12: {"id": 12, "name": "T-Shirt - Blue", "price": 27.00, "type": "variation", "parent_id": 10, "in_stock": True},
}

@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
