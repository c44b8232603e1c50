from flask import Flask, request, jsonify, Blueprint, render_template, current_app, Response, stream_with_context
from flask_jwt_extended import create_access_token, get_jwt_identity, jwt_required, JWTManager, get_jwt
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from flask_migrate import Migrate
from flask_bcrypt import Bcrypt
from flasgger import Swagger
from flask_cors import CORS
from sqlalchemy import func
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
import json
import re
import base64
import binascii
