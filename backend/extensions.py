from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_mail import Mail

# Extensions are created unbound and attached in create_app()
jwt = JWTManager()
mail = Mail()
cors = CORS()
