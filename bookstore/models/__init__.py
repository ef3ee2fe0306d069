from bookstore.models.user import User
from bookstore.models.author import Author
from bookstore.models.publisher import Publisher
from bookstore.models.category import Category
from bookstore.models.book import Book
from bookstore.models.review import Review
from bookstore.models.cart import CartItem
from bookstore.models.order import Order
from bookstore.models.order_item import OrderItem
from bookstore.models.order_event import OrderEvent

# add ALL models here
