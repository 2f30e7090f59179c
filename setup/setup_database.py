#!/usr/bin/env python3
"""
Database setup script for the humor flavor admin console.

Creates the flavor tables and the transactional delete function using a
direct PostgreSQL connection. The profiles, images, captions and
caption_votes tables belong to the main platform and are not touched.

Usage:
    python setup/setup_database.py           # Create schema
    python setup/setup_database.py --verify  # Verify existing schema
    python setup/setup_database.py --drop    # Drop and recreate (DANGEROUS)
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.config_loader import load_config
from utils.logger import setup_logger

try:
    import psycopg2
except ImportError:
    print("Error: psycopg2 not installed. Run: pip install -e .")
    sys.exit(1)

logger = setup_logger(name=__name__)


CREATE_FLAVORS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS humor_flavors (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name TEXT NOT NULL CHECK (btrim(name) <> ''),
    description TEXT NOT NULL DEFAULT '',
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

CREATE_STEPS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS humor_flavor_steps (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    
    -- Steps go away with their flavor
    flavor_id UUID NOT NULL REFERENCES humor_flavors(id) ON DELETE CASCADE,
    
    step_number INTEGER NOT NULL CHECK (step_number > 0),
    instruction TEXT NOT NULL CHECK (btrim(instruction) <> ''),
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    
    -- One step per position within a flavor
    UNIQUE(flavor_id, step_number)
);
"""

CREATE_DELETE_FUNCTION_SQL = """
CREATE OR REPLACE FUNCTION delete_humor_flavor(target_flavor_id UUID)
RETURNS VOID
LANGUAGE plpgsql
AS $$
BEGIN
    DELETE FROM humor_flavor_steps WHERE flavor_id = target_flavor_id;
    DELETE FROM humor_flavors WHERE id = target_flavor_id;
END;
$$;
"""

CREATE_INDEXES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_humor_flavors_name ON humor_flavors(name);",
]

DROP_TABLE_SQL = (
    "DROP FUNCTION IF EXISTS delete_humor_flavor(UUID); "
    "DROP TABLE IF EXISTS humor_flavor_steps CASCADE; "
    "DROP TABLE IF EXISTS humor_flavors CASCADE;"
)

EXPECTED_TABLES = ["humor_flavors", "humor_flavor_steps"]


def get_database_url(config) -> str:
    """
    Get PostgreSQL database URL.
    
    Uses DATABASE_URL from .env; exits with instructions if it's missing.
    """
    if config.credentials.database_url:
        return config.credentials.database_url
    
    logger.error("DATABASE_URL not found in .env file")
    logger.error("\nTo get your DATABASE_URL:")
    logger.error("1. Go to Supabase Dashboard → Project Settings → Database")
    logger.error("2. Find 'Connection string' under 'Connection pooling'")
    logger.error("3. Copy the 'URI' connection string")
    logger.error("4. Add to .env file: DATABASE_URL=postgresql://...")
    sys.exit(1)


def create_connection(database_url: str):
    """Create a PostgreSQL database connection."""
    try:
        conn = psycopg2.connect(database_url)
        logger.info("✓ Connected to PostgreSQL database")
        return conn
    except Exception as e:
        logger.error(f"✗ Failed to connect to database: {e}")
        logger.error("\nMake sure:")
        logger.error("1. DATABASE_URL is correct in .env file")
        logger.error("2. Your IP is allowed in Supabase (Project Settings → Database → Connection pooling)")
        logger.error("3. Database password is correct")
        sys.exit(1)


def execute_sql(conn, sql_statement: str, description: str) -> bool:
    """Execute a SQL statement."""
    try:
        cursor = conn.cursor()
        cursor.execute(sql_statement)
        conn.commit()
        cursor.close()
        logger.info(f"✓ {description}")
        return True
    except Exception as e:
        logger.error(f"✗ {description} failed: {e}")
        conn.rollback()
        return False


def verify_schema(conn) -> bool:
    """Verify that the tables and the delete function exist."""
    try:
        cursor = conn.cursor()
        
        for table in EXPECTED_TABLES:
            cursor.execute("""
                SELECT EXISTS (
                    SELECT FROM information_schema.tables 
                    WHERE table_name = %s
                );
            """, (table,))
            if not cursor.fetchone()[0]:
                logger.error(f"✗ Table '{table}' does not exist")
                cursor.close()
                return False
            logger.info(f"✓ Table '{table}' exists")
        
        cursor.execute("""
            SELECT EXISTS (
                SELECT FROM pg_proc WHERE proname = 'delete_humor_flavor'
            );
        """)
        if cursor.fetchone()[0]:
            logger.info("✓ Function 'delete_humor_flavor' exists")
        else:
            logger.warning("⚠ Function 'delete_humor_flavor' missing (console falls back to two-step delete)")
        
        cursor.close()
        return True
        
    except Exception as e:
        logger.error(f"✗ Schema verification failed: {e}")
        return False


def create_schema(conn) -> bool:
    """Create the database schema."""
    logger.info("\n" + "="*80)
    logger.info("CREATING SCHEMA")
    logger.info("="*80 + "\n")
    
    if not execute_sql(conn, CREATE_FLAVORS_TABLE_SQL, "Created table 'humor_flavors'"):
        return False
    
    if not execute_sql(conn, CREATE_STEPS_TABLE_SQL, "Created table 'humor_flavor_steps'"):
        return False
    
    if not execute_sql(conn, CREATE_DELETE_FUNCTION_SQL, "Created function 'delete_humor_flavor'"):
        return False
    
    for idx_sql in CREATE_INDEXES_SQL:
        idx_name = idx_sql.split("INDEX IF NOT EXISTS ")[1].split(" ON")[0]
        if not execute_sql(conn, idx_sql, f"Created index '{idx_name}'"):
            return False
    
    logger.info("\n✓ Database schema created successfully!")
    return True


def drop_schema(conn) -> bool:
    """Drop the existing schema (DANGEROUS)."""
    logger.warning("\n" + "="*80)
    logger.warning("⚠️  WARNING: DROPPING EXISTING SCHEMA")
    logger.warning("="*80)
    logger.warning("This will DELETE ALL humor flavors and their steps!")
    
    response = input("\nType 'yes' to confirm: ")
    if response.lower() != 'yes':
        logger.info("Aborted.")
        return False
    
    if not execute_sql(conn, DROP_TABLE_SQL, "Dropped tables 'humor_flavor_steps' and 'humor_flavors'"):
        return False
    
    logger.info("✓ Schema dropped")
    return True


def main():
    parser = argparse.ArgumentParser(
        description="Set up database schema for the humor flavor admin console"
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Verify existing schema without creating"
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop and recreate tables (DANGEROUS - deletes all data)"
    )
    
    args = parser.parse_args()
    
    config = load_config()
    logger.info("✓ Configuration loaded")
    
    database_url = get_database_url(config)
    conn = create_connection(database_url)
    
    try:
        if args.verify:
            logger.info("\n" + "="*80)
            logger.info("VERIFYING SCHEMA")
            logger.info("="*80 + "\n")
            
            if verify_schema(conn):
                logger.info("\n✓ Schema verification successful")
                sys.exit(0)
            else:
                logger.error("\n✗ Schema verification failed")
                sys.exit(1)
        
        if args.drop:
            if not drop_schema(conn):
                sys.exit(1)
        
        if create_schema(conn):
            logger.info("\nVerify the schema with:")
            logger.info("   python setup/setup_database.py --verify")
            sys.exit(0)
        else:
            logger.error("\n✗ Schema creation failed")
            sys.exit(1)
            
    finally:
        conn.close()
        logger.info("\n✓ Database connection closed")


if __name__ == "__main__":
    main()
