from movie_rental.models.customer import Customer
from movie_rental.models.movie import Movie
from movie_rental.models.rental import PaymentMethod, Rental
